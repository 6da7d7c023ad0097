class ClusterResources:
    """Encapsulates the naming scheme used for the resources which the operator manages
    for a Cluster of the given name."""

    @classmethod
    def service_read_write_name(self, cluster_name: str):
        """Returns the name of the service routing to the primary."""
        return f"{cluster_name}-rw"

    @classmethod
    def service_read_only_name(self, cluster_name: str):
        """Returns the name of the service routing to the replicas."""
        return f"{cluster_name}-ro"

    @classmethod
    def service_read_name(self, cluster_name: str):
        """Returns the name of the service routing to every ready instance."""
        return f"{cluster_name}-r"

    @classmethod
    def service_any_name(self, cluster_name: str):
        """Returns the name of the service routing to any instance, ready or not."""
        return f"{cluster_name}-any"

    @classmethod
    def qualified_service_name(self, service_name: str, namespace: str):
        """Returns qualified name of the service which works across different namespaces."""
        return f"{service_name}.{namespace}.svc"

    @classmethod
    def superuser_secret_name(self, cluster_name: str):
        return f"{cluster_name}-superuser"

    @classmethod
    def application_secret_name(self, cluster_name: str):
        return f"{cluster_name}-app"

    @classmethod
    def service_account_name(self, cluster_name: str):
        return cluster_name

    @classmethod
    def primary_budget_name(self, cluster_name: str):
        return f"{cluster_name}-primary"

    @classmethod
    def replica_budget_name(self, cluster_name: str):
        return cluster_name

    @classmethod
    def pod_monitor_name(self, cluster_name: str):
        return cluster_name
