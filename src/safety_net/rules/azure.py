"""Azure CLI rules."""

from safety_net.config import AnalyzerConfig
from safety_net.models import Confidence, Decision, Verdict
from safety_net.rules.base import command_path, flag, has_any, parse, path_matches
from safety_net.rules.registry import register_rule

CATEGORY = "azure"

YES_FLAGS = ("--yes", "-y")
FORCE_FLAGS = ("--force", "--force-string")

CATASTROPHIC = {
    "group delete": "az group delete removes the ENTIRE resource group and ALL resources within it.",
    "account clear": "az account clear removes all subscriptions from the CLI.",
}

DESTRUCTIVE = {
    # Compute
    "vm delete": "az vm delete permanently destroys virtual machines.",
    "vmss delete": "az vmss delete destroys VM scale sets.",
    "disk delete": "az disk delete destroys managed disks and data.",
    "snapshot delete": "az snapshot delete removes disk snapshots.",
    "image delete": "az image delete removes VM images.",
    # Storage
    "storage account delete": "az storage account delete destroys storage account and ALL data.",
    "storage container delete": "az storage container delete removes blob containers.",
    "storage blob delete": "az storage blob delete removes blobs.",
    "storage blob delete-batch": "az storage blob delete-batch bulk deletes blobs.",
    "storage share delete": "az storage share delete removes file shares.",
    "storage table delete": "az storage table delete removes tables.",
    "storage queue delete": "az storage queue delete removes queues.",
    # Databases
    "sql server delete": "az sql server delete destroys SQL servers.",
    "sql db delete": "az sql db delete destroys SQL databases.",
    "cosmosdb delete": "az cosmosdb delete destroys Cosmos DB accounts.",
    "mysql server delete": "az mysql server delete destroys MySQL servers.",
    "postgres server delete": "az postgres server delete destroys PostgreSQL servers.",
    "redis delete": "az redis delete destroys Redis caches.",
    # Kubernetes
    "aks delete": "az aks delete removes AKS clusters.",
    "aks nodepool delete": "az aks nodepool delete removes node pools.",
    # App Services
    "webapp delete": "az webapp delete removes web apps.",
    "functionapp delete": "az functionapp delete removes function apps.",
    "appservice plan delete": "az appservice plan delete removes App Service plans.",
    # Networking
    "network vnet delete": "az network vnet delete removes virtual networks.",
    "network nsg delete": "az network nsg delete removes network security groups.",
    "network lb delete": "az network lb delete removes load balancers.",
    "network public-ip delete": "az network public-ip delete removes public IPs.",
    "network application-gateway delete": "az network application-gateway delete removes app gateways.",
    # Security
    "keyvault delete": "az keyvault delete removes Key Vaults.",
    "keyvault secret delete": "az keyvault secret delete removes secrets.",
    "keyvault key delete": "az keyvault key delete removes keys.",
    "keyvault certificate delete": "az keyvault certificate delete removes certificates.",
    # Container Registry
    "acr delete": "az acr delete removes container registries.",
    "acr repository delete": "az acr repository delete removes repositories.",
    # Service Bus / Event Hub
    "servicebus namespace delete": "az servicebus namespace delete removes Service Bus namespaces.",
    "servicebus queue delete": "az servicebus queue delete removes queues.",
    "servicebus topic delete": "az servicebus topic delete removes topics.",
    "eventhubs namespace delete": "az eventhubs namespace delete removes Event Hub namespaces.",
    "eventhubs eventhub delete": "az eventhubs eventhub delete removes Event Hubs.",
}


def _rule_id(pattern: str) -> str:
    return "azure-" + pattern.replace(" ", "-")


@register_rule(category=CATEGORY, commands=("az",))
def analyze_azure(text: str, config: AnalyzerConfig) -> Verdict:
    """Classify destructive az commands.

    ``--yes`` skips Azure's confirmation prompt, so it turns a warning
    into a denial, as does ``--force`` combined with ``--no-wait``.
    """
    command = parse(text)
    args = command.args
    if not args:
        return Verdict.allow()

    yes = has_any(args, YES_FLAGS)
    path = command_path(args)
    joined = " ".join(path)

    for pattern, reason in CATASTROPHIC.items():
        if path_matches(path, pattern):
            if yes:
                reason += " (--yes bypasses confirmation)"
            return flag(Decision.DENY, _rule_id(pattern), CATEGORY, reason, ["az", *pattern.split()])

    aggressive = yes or (has_any(args, FORCE_FLAGS) and "--no-wait" in args)
    for pattern, reason in DESTRUCTIVE.items():
        if path_matches(path, pattern):
            decision = Decision.DENY if aggressive or config.is_paranoid() else Decision.WARN
            return flag(decision, _rule_id(pattern), CATEGORY, reason, ["az", *pattern.split()])

    if "delete" in path or "purge" in path:
        return flag(
            Decision.DENY if yes or config.is_paranoid() else Decision.WARN,
            "azure-delete-generic",
            CATEGORY,
            f"az {joined} is a destructive operation.",
            ["az", *path[:3]],
            Confidence.MEDIUM,
        )

    return Verdict.allow()
