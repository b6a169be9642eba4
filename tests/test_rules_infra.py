"""Tests for Terraform, Pulumi, Kubernetes and container rules."""

import pytest

from safety_net.models import Confidence, Decision
from safety_net.rules import dispatch


class TestTerraformRules:
    """Tests for terraform and tofu."""

    @pytest.mark.parametrize("tool", ["terraform", "tofu"])
    def test_destroy_denied(self, config, tool: str):
        """Test destroy is always denied."""
        verdict = dispatch(f"{tool} destroy", config())

        assert verdict.decision is Decision.DENY
        assert verdict.rule_id == "terraform-destroy"
        assert verdict.reason.startswith(tool)

    def test_destroy_auto_approve(self, config):
        """Test the auto-approve variant has its own rule."""
        verdict = dispatch("terraform destroy -auto-approve", config())

        assert verdict.rule_id == "terraform-destroy-auto-approve"

    def test_apply_destroy(self, config):
        """Test apply -destroy is treated like destroy."""
        assert dispatch("terraform apply -destroy", config()).rule_id == "terraform-apply-destroy"
        assert (
            dispatch("terraform apply -destroy -auto-approve", config()).rule_id
            == "terraform-apply-destroy-auto-approve"
        )

    def test_apply_auto_approve(self, config):
        """Test apply -auto-approve warns, and denies in paranoid mode."""
        assert dispatch("terraform apply -auto-approve", config()).decision is Decision.WARN
        assert dispatch("terraform apply --auto-approve=true", config()).decision is Decision.WARN
        assert dispatch("terraform apply -auto-approve", config(paranoid=True)).decision is Decision.DENY

    def test_chdir_option_skipped(self, config):
        """Test global options before the subcommand."""
        assert dispatch("terraform -chdir=infra destroy", config()).decision is Decision.DENY

    @pytest.mark.parametrize(
        ("command", "rule_id"),
        [
            ("terraform plan -destroy", "terraform-plan-destroy"),
            ("terraform taint aws_instance.web", "terraform-taint"),
            ("terraform state rm aws_instance.web", "terraform-state-rm"),
            ("terraform state mv a b", "terraform-state-mv"),
            ("terraform state replace-provider a b", "terraform-state-replace-provider"),
            ("terraform import aws_instance.web i-1", "terraform-import"),
            ("terraform workspace delete staging", "terraform-workspace-delete"),
            ("terraform refresh -auto-approve", "terraform-refresh-auto-approve"),
        ],
    )
    def test_warned(self, config, command: str, rule_id: str):
        """Test state-changing operations warn."""
        verdict = dispatch(command, config())

        assert verdict.decision is Decision.WARN
        assert verdict.rule_id == rule_id

    def test_force_unlock(self, config):
        """Test force-unlock is denied."""
        assert dispatch("terraform force-unlock 1234", config()).decision is Decision.DENY

    @pytest.mark.parametrize(
        "command",
        ["terraform plan", "terraform apply", "terraform init", "terraform state list", "terraform"],
    )
    def test_allowed(self, config, command: str):
        """Test read-only and interactive commands."""
        assert dispatch(command, config()).is_allow


class TestPulumiRules:
    """Tests for pulumi."""

    def test_destroy(self, config):
        """Test destroy is denied unless previewing."""
        assert dispatch("pulumi destroy", config()).decision is Decision.DENY
        assert dispatch("pulumi destroy --preview", config()).is_allow

    def test_stack_rm(self, config):
        """Test stack rm warns, and denies with --force/--yes."""
        assert dispatch("pulumi stack rm dev", config()).rule_id == "pulumi-stack-rm"
        assert dispatch("pulumi stack rm dev --yes", config()).rule_id == "pulumi-stack-rm-force"
        assert dispatch("pulumi stack rm dev -f", config()).decision is Decision.DENY

    def test_up_yes(self, config):
        """Test up --yes warns, and denies with paranoid_pulumi."""
        assert dispatch("pulumi up --yes", config()).decision is Decision.WARN
        assert dispatch("pulumi up -y", config(paranoid_pulumi=True)).decision is Decision.DENY
        assert dispatch("pulumi up", config()).is_allow

    def test_other_operations(self, config):
        """Test cancel, state delete and refresh --yes."""
        assert dispatch("pulumi cancel", config()).confidence is Confidence.MEDIUM
        assert dispatch("pulumi state delete urn", config()).rule_id == "pulumi-state-delete"
        assert dispatch("pulumi refresh --yes", config()).rule_id == "pulumi-refresh-yes"
        assert dispatch("pulumi preview", config()).is_allow


class TestKubernetesRules:
    """Tests for kubectl and helm."""

    def test_delete_namespace(self, config):
        """Test namespace deletion is denied."""
        assert dispatch("kubectl delete namespace team-a", config()).rule_id == "kubectl-delete-namespace"
        assert (
            dispatch("kubectl delete ns kube-system", config()).rule_id
            == "kubectl-delete-critical-namespace"
        )

    def test_delete_all(self, config):
        """Test bulk deletions are denied."""
        assert dispatch("kubectl delete pods --all", config()).rule_id == "kubectl-delete-all"
        assert dispatch("kubectl delete pods -A", config()).rule_id == "kubectl-delete-all-namespaces"

    def test_delete_force_immediate(self, config):
        """Test --force --grace-period=0."""
        verdict = dispatch("kubectl delete pod web --force --grace-period=0", config())

        assert verdict.rule_id == "kubectl-delete-force-immediate"

    def test_delete_resources(self, config):
        """Test ordinary and critical resource deletion."""
        assert dispatch("kubectl delete pod web-1", config()).rule_id == "kubectl-delete"
        assert dispatch("kubectl -n prod delete secret db", config()).rule_id == "kubectl-delete-secret"
        assert dispatch("kubectl delete pod web-1", config(paranoid=True)).decision is Decision.DENY

    def test_delete_kustomize(self, config):
        """Test delete -k."""
        assert dispatch("kubectl delete -k overlays/prod", config()).rule_id == "kubectl-delete-kustomize"
        assert dispatch("kubectl apply -k overlays/prod", config()).is_allow

    def test_dry_run(self, config):
        """Test client/server dry runs are allowed."""
        assert dispatch("kubectl delete namespace x --dry-run=client", config()).is_allow

    def test_drain(self, config):
        """Test node drain."""
        assert dispatch("kubectl drain node-1", config()).decision is Decision.WARN
        assert dispatch("kubectl drain node-1 --force", config()).decision is Decision.DENY
        assert (
            dispatch("kubectl drain node-1 --delete-emptydir-data", config()).rule_id
            == "kubectl-drain-delete-data"
        )

    def test_scale_and_taint(self, config):
        """Test scale to zero and NoExecute taints."""
        assert dispatch("kubectl scale deploy web --replicas=0", config()).rule_id == "kubectl-scale-zero"
        assert dispatch("kubectl scale deploy web --replicas=3", config()).is_allow
        assert (
            dispatch("kubectl taint nodes n1 key=v:NoExecute", config()).rule_id
            == "kubectl-taint-noexecute"
        )

    def test_read_commands(self, config):
        """Test get/describe/logs."""
        assert dispatch("kubectl get pods -A", config()).is_allow
        assert dispatch("kubectl logs web-1", config()).is_allow

    def test_helm(self, config):
        """Test helm release operations."""
        assert dispatch("helm uninstall web", config()).rule_id == "helm-uninstall"
        assert dispatch("helm rollback web 3", config()).rule_id == "helm-rollback"
        assert dispatch("helm upgrade web ./chart --force", config()).rule_id == "helm-upgrade-force"
        assert dispatch("helm uninstall web --dry-run", config()).is_allow
        assert dispatch("helm list", config()).is_allow


class TestDockerRules:
    """Tests for docker, podman and compose."""

    def test_system_prune(self, config):
        """Test system prune, plain and aggressive."""
        assert dispatch("docker system prune", config()).decision is Decision.WARN
        assert (
            dispatch("docker system prune -a --volumes", config()).rule_id
            == "docker-system-prune-aggressive"
        )

    def test_volume_commands(self, config):
        """Test volume prune and rm."""
        assert dispatch("docker volume prune", config()).decision is Decision.DENY
        assert dispatch("docker volume rm data", config()).decision is Decision.WARN
        assert dispatch("docker volume ls", config()).is_allow

    def test_force_removal(self, config):
        """Test rm -f and rmi -f."""
        assert dispatch("docker rm -f web", config()).rule_id == "docker-rm-force"
        assert dispatch("docker rm -vf web", config()).rule_id == "docker-rm-force"
        assert dispatch("docker rmi --force nginx", config()).rule_id == "docker-rmi-force"
        assert dispatch("docker rm web", config()).is_allow
        assert dispatch("docker container rm -f web", config()).rule_id == "docker-container-rm-force"

    def test_stop_all(self, config):
        """Test stopping every container via command substitution."""
        assert dispatch("docker stop $(docker ps -q)", config()).rule_id == "docker-stop-all"
        assert dispatch("docker kill $(docker ps -q)", config()).rule_id == "docker-kill-all"
        assert dispatch("docker stop web", config()).is_allow

    def test_other_management_commands(self, config):
        """Test container, image and network cleanup."""
        assert dispatch("docker container prune", config()).rule_id == "docker-container-prune"
        assert dispatch("docker image prune -a", config()).rule_id == "docker-image-prune-all"
        assert dispatch("docker image prune", config()).is_allow
        assert dispatch("docker network prune", config()).rule_id == "docker-network-prune"
        assert dispatch("docker network rm net", config()).rule_id == "docker-network-rm"

    def test_compose(self, config):
        """Test compose down and rm, for both spellings."""
        assert dispatch("docker-compose down -v", config()).rule_id == "docker-compose-down-volumes"
        assert dispatch("docker compose down --volumes", config()).decision is Decision.DENY
        assert dispatch("docker compose down", config()).is_allow
        assert dispatch("docker-compose rm -f", config()).rule_id == "docker-compose-rm-force"
        assert dispatch("docker compose rm -v", config()).rule_id == "docker-compose-rm-volumes"

    def test_podman(self, config):
        """Test podman shares the docker rules."""
        assert dispatch("podman volume prune", config()).decision is Decision.DENY

    def test_read_commands(self, config):
        """Test ps, images and run."""
        assert dispatch("docker ps -a", config()).is_allow
        assert dispatch("docker run --rm -it alpine sh", config()).is_allow
