"""Credential secrets generated for a cluster.

Generated passwords are written once, when the secret is created. Nothing in
the secret body is recomputed afterwards, so credentials never rotate behind
the database's back; only the inherited metadata keeps converging.
"""
import secrets
from typing import Any, Dict, List, Optional
from pgcluster.common.models.labels import Labels
from pgcluster.resources.base import ManagedResource, MetadataMerge
from pgcluster.types.models import ClusterResources

BASIC_AUTH = "kubernetes.io/basic-auth"
PASSWORD_BYTES = 48
POOLER_AUTH_USER = "pgcluster_pooler_pgbouncer"


def generate_password() -> str:
    return secrets.token_urlsafe(PASSWORD_BYTES)


class CredentialSecret(ManagedResource):
    """A ``basic-auth`` secret holding generated credentials.

    The password is drawn once per instance, so ``build_desired`` returns the
    same manifest on every call. It only reaches the cluster when the secret
    is created, since the body is not a payload field.
    """

    API_VERSION = "v1"
    KIND = "Secret"

    METADATA_MERGE = MetadataMerge.INHERIT
    PAYLOAD_FIELDS = []
    REQUIRED_FIELDS = [("type",), ("stringData", "username"), ("stringData", "password")]

    _password: Optional[str] = None

    @property
    def username(self) -> str:
        raise NotImplementedError()

    @property
    def password(self) -> str:
        if self._password is None:
            self._password = generate_password()
        return self._password

    def prepare_credentials(self, password: str) -> Dict[str, str]:
        return {"username": self.username, "password": password}

    def prepare_payload(self) -> Dict[str, Any]:
        return {
            "type": BASIC_AUTH,
            "stringData": self.prepare_credentials(self.password),
        }


class SuperuserSecret(CredentialSecret):
    @property
    def name(self) -> str:
        return ClusterResources.superuser_secret_name(self.cluster.name)

    @property
    def username(self) -> str:
        return self.cluster.SUPERUSER

    def prepare_credentials(self, password: str) -> Dict[str, str]:
        return connection_credentials(self.cluster, self.username, password, "*")


class ApplicationSecret(CredentialSecret):
    """Credentials of the application database owner."""

    @property
    def name(self) -> str:
        return ClusterResources.application_secret_name(self.cluster.name)

    @property
    def username(self) -> str:
        return self.cluster.application_owner

    def prepare_credentials(self, password: str) -> Dict[str, str]:
        return connection_credentials(
            self.cluster, self.username, password, self.cluster.application_database
        )


class PoolerSecret(CredentialSecret):
    """Credentials a registered pooler authenticates with."""

    def __init__(self, cluster, secret_name: str):
        super().__init__(cluster)
        self.secret_name = secret_name

    @property
    def name(self) -> str:
        return self.secret_name

    @property
    def username(self) -> str:
        return POOLER_AUTH_USER

    def prepare_labels(self) -> Dict[str, str]:
        return Labels(super().prepare_labels()).include_pooler_secret().as_dict()


def connection_credentials(
    cluster, username: str, password: str, database: str
) -> Dict[str, str]:
    """Credentials plus ready to use connection strings for the primary."""
    host = cluster.read_write_service_name
    fqdn = ClusterResources.qualified_service_name(host, cluster.namespace)
    port = str(cluster.POSTGRES_PORT)
    credentials = {
        "username": username,
        "password": password,
        "host": host,
        "port": port,
        "pgpass": f"{host}:{port}:{database}:{username}:{password}\n",
    }
    if database != "*":
        credentials.update(
            {
                "dbname": database,
                "uri": f"postgresql://{username}:{password}@{fqdn}:{port}/{database}",
                "jdbc-uri": (
                    f"jdbc:postgresql://{fqdn}:{port}/{database}"
                    f"?password={password}&user={username}"
                ),
            }
        )
    return credentials


def pooler_secrets(cluster) -> List[PoolerSecret]:
    return [PoolerSecret(cluster, name) for name in cluster.pooler_secret_names]
