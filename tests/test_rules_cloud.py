"""Tests for AWS, Google Cloud and Azure rules."""

import pytest

from safety_net.models import Confidence, Decision
from safety_net.rules import dispatch
from safety_net.rules.aws import classify_subcommand, s3_direction, skip_global_options


class TestAwsClassification:
    """Tests for the AWS helper functions."""

    @pytest.mark.parametrize(
        ("subcommand", "expected"),
        [
            ("describe-instances", "read"),
            ("list-buckets", "read"),
            ("get-object", "read"),
            ("batch-get-item", "read"),
            ("create-bucket", "mutation"),
            ("put-object", "mutation"),
            ("batch-write-item", "mutation"),
            ("frobnicate-widget", "mutation"),
            ("delete-bucket", "destructive"),
            ("terminate-instances", "destructive"),
            ("schedule-key-deletion", "destructive"),
        ],
    )
    def test_classify_subcommand(self, subcommand: str, expected: str):
        """Test verb classification, with unknown verbs as mutations."""
        assert classify_subcommand(subcommand) == expected

    def test_skip_global_options(self):
        """Test global options before the service."""
        args = ["--profile", "prod", "--region=us-east-1", "--debug", "ec2", "describe-instances", "--x"]

        assert skip_global_options(args) == ("ec2", "describe-instances", ["--x"])

    @pytest.mark.parametrize(
        ("args", "direction"),
        [
            (["s3://b/k", "./k"], "download"),
            (["./k", "s3://b/k"], "upload"),
            (["s3://a/k", "s3://b/k"], "s3-to-s3"),
            (["./k"], "unknown"),
        ],
    )
    def test_s3_direction(self, args: list[str], direction: str):
        """Test s3 cp/sync direction detection."""
        assert s3_direction(args) == direction


class TestAwsRules:
    """Tests for aws command classification."""

    def test_read_is_allowed(self, config):
        """Test describe/list/get are allowed."""
        assert dispatch("aws ec2 describe-instances", config()).is_allow
        assert dispatch("aws --profile prod s3api list-buckets", config()).is_allow

    def test_destructive_is_denied(self, config):
        """Test destructive verbs are denied."""
        verdict = dispatch("aws ec2 terminate-instances --instance-ids i-1", config())

        assert verdict.decision is Decision.DENY
        assert verdict.rule_id == "aws-ec2-terminate-instances"
        assert verdict.category == "aws"

    def test_mutation_warns(self, config):
        """Test mutation verbs warn."""
        verdict = dispatch("aws lambda update-function-code --function-name f", config())

        assert verdict.decision is Decision.WARN
        assert verdict.rule_id == "aws-lambda-update-function-code"

    def test_mutation_paranoid(self, config):
        """Test paranoid_aws escalates mutations."""
        verdict = dispatch("aws ec2 create-tags --resources i-1", config(paranoid_aws=True))

        assert verdict.decision is Decision.DENY

    def test_bypass_flag_escalates(self, config):
        """Test --force style flags turn a mutation into a denial."""
        verdict = dispatch("aws rds modify-db-instance --db-instance-identifier x --force", config())

        assert verdict.decision is Decision.DENY

    def test_dry_run_lowers(self, config):
        """Test --dry-run lowers deny to warn and warn to allow."""
        assert dispatch("aws ec2 terminate-instances --dry-run", config()).decision is Decision.WARN
        assert dispatch("aws ec2 run-instances --dry-run", config()).is_allow
        assert (
            dispatch("aws ec2 terminate-instances --dry-run --no-dry-run", config()).decision
            is Decision.DENY
        )

    def test_s3_commands(self, config):
        """Test high-level s3 commands."""
        assert dispatch("aws s3 ls s3://bucket", config()).is_allow
        assert dispatch("aws s3 cp s3://bucket/key ./key", config()).is_allow
        assert dispatch("aws s3 cp ./key s3://bucket/key", config()).rule_id == "aws-s3-cp"
        assert dispatch("aws s3 sync . s3://bucket --delete", config()).rule_id == "aws-s3-sync-delete"
        assert dispatch("aws s3 rm s3://bucket --recursive", config()).decision is Decision.DENY
        assert dispatch("aws s3 rm s3://bucket/key", config()).decision is Decision.WARN
        assert dispatch("aws s3 rb s3://bucket --force", config()).rule_id == "aws-s3-rb-force"
        assert dispatch("aws s3 mv ./a s3://bucket/a", config()).rule_id == "aws-s3-mv"

    def test_route53_delete(self, config):
        """Test DNS record deletion through a change batch."""
        command = (
            "aws route53 change-resource-record-sets --hosted-zone-id Z1 "
            "--change-batch '{\"Changes\":[{\"Action\":\"DELETE\"}]}'"
        )
        verdict = dispatch(command, config())

        assert verdict.rule_id == "aws-route53-delete-record"
        assert verdict.confidence is Confidence.MEDIUM

    def test_bare_aws(self, config):
        """Test aws with no service or subcommand."""
        assert dispatch("aws", config()).is_allow
        assert dispatch("aws --version", config()).is_allow


class TestGcloudRules:
    """Tests for gcloud and gsutil."""

    def test_project_delete_always_denied(self, config):
        """Test catastrophic operations."""
        verdict = dispatch("gcloud projects delete my-project", config())

        assert verdict.decision is Decision.DENY
        assert verdict.rule_id == "gcloud-projects-delete"

    def test_quiet_noted_in_reason(self, config):
        """Test --quiet is called out on catastrophic operations."""
        verdict = dispatch("gcloud projects delete my-project --quiet", config())

        assert "--quiet" in verdict.reason

    def test_destructive_warns(self, config):
        """Test known destructive operations warn by default."""
        verdict = dispatch("gcloud compute instances delete vm-1 --zone us-east1-b", config())

        assert verdict.decision is Decision.WARN
        assert verdict.rule_id == "gcloud-compute-instances-delete"

    def test_destructive_quiet_denies(self, config):
        """Test --quiet skips the prompt and is denied."""
        verdict = dispatch("gcloud sql instances delete db -q", config())

        assert verdict.decision is Decision.DENY

    def test_destructive_paranoid_denies(self, config):
        """Test paranoid mode denies destructive operations."""
        verdict = dispatch("gcloud secrets delete api-key", config(paranoid=True))

        assert verdict.decision is Decision.DENY

    def test_generic_delete(self, config):
        """Test unknown delete operations."""
        verdict = dispatch("gcloud dns record-sets delete www", config())

        assert verdict.rule_id == "gcloud-delete-generic"
        assert verdict.confidence is Confidence.MEDIUM

    def test_read_is_allowed(self, config):
        """Test list/describe."""
        assert dispatch("gcloud compute instances list", config()).is_allow

    def test_gsutil(self, config):
        """Test gsutil deletion commands."""
        assert dispatch("gsutil rm -r gs://bucket", config()).rule_id == "gsutil-rm-recursive"
        assert dispatch("gsutil -m rm -r gs://bucket", config()).decision is Decision.DENY
        assert dispatch("gsutil rm gs://bucket/key", config()).decision is Decision.WARN
        assert dispatch("gsutil rb -f gs://bucket", config()).rule_id == "gsutil-rb-force"
        assert dispatch("gsutil rsync -d ./dir gs://bucket", config()).rule_id == "gsutil-rsync-delete"
        assert dispatch("gsutil ls gs://bucket", config()).is_allow


class TestAzureRules:
    """Tests for the az CLI."""

    def test_group_delete_always_denied(self, config):
        """Test catastrophic operations."""
        verdict = dispatch("az group delete --name rg", config())

        assert verdict.decision is Decision.DENY
        assert verdict.rule_id == "azure-group-delete"

    def test_yes_noted_in_reason(self, config):
        """Test --yes is called out on catastrophic operations."""
        assert "--yes" in dispatch("az group delete -n rg --yes", config()).reason

    def test_destructive_warns(self, config):
        """Test known destructive operations warn by default."""
        verdict = dispatch("az vm delete --name vm1 --resource-group rg", config())

        assert verdict.decision is Decision.WARN
        assert verdict.rule_id == "azure-vm-delete"

    def test_destructive_yes_denies(self, config):
        """Test --yes skips the prompt and is denied."""
        assert dispatch("az storage account delete -n acct -y", config()).decision is Decision.DENY

    def test_force_no_wait_denies(self, config):
        """Test --force together with --no-wait."""
        verdict = dispatch("az vm delete -n vm1 --force --no-wait", config())

        assert verdict.decision is Decision.DENY

    def test_longer_pattern_matches_by_word(self, config):
        """Test delete-batch is its own operation, not a prefix of delete."""
        verdict = dispatch("az storage blob delete-batch --source c", config())

        assert verdict.rule_id == "azure-storage-blob-delete-batch"

    def test_generic_delete(self, config):
        """Test unknown delete operations."""
        verdict = dispatch("az network vnet delete -n v", config())

        assert verdict.rule_id == "azure-delete-generic"
        assert verdict.decision is Decision.WARN

    def test_read_is_allowed(self, config):
        """Test list/show."""
        assert dispatch("az vm list", config()).is_allow
        assert dispatch("az", config()).is_allow
