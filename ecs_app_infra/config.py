"""Configuration shared by all stacks.

The environment is read exactly once, by load_config(), and the resulting
InfraConfig is handed by value to every stack constructor.
"""

import ipaddress
import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

import aws_cdk as cdk

logger = logging.getLogger(__name__)

PRODUCTION = "production"


@dataclass(frozen=True)
class StateLocation:
    """
        Where the deployment state of each stack lives.

        Every stack gets its own key, {environment}/{state_id}.tfstate,
        inside one shared bucket. The lock table is shared as well.
    """
    environment: str
    region: str
    bucket: Optional[str] = None
    lock_table: Optional[str] = None

    def key_for(self, state_id: str) -> str:
        return "%s/%s.tfstate" % (self.environment, state_id)


@dataclass(frozen=True)
class NetworkSettings:
    vpc_cidr: str = "10.0.0.0/16"
    public_subnet_cidrs: Tuple[str, ...] = ("10.0.0.0/24", "10.0.1.0/24", "10.0.2.0/24")
    private_subnet_cidrs: Tuple[str, ...] = ("10.0.20.0/24", "10.0.21.0/24", "10.0.22.0/24")
    zone_count: int = 3

    def validate(self):
        '''
            Checks the address plan

            Raises
            ---------
            ValueError
                if a block is malformed, falls outside the VPC block,
                overlaps another subnet or the subnet count of a tier does
                not match the zone count
        '''
        try:
            vpc = ipaddress.ip_network(self.vpc_cidr)
            subnets = [ipaddress.ip_network(c) for c in self.subnet_cidrs]
        except ValueError as e:
            raise ValueError("Invalid network CIDR: %s" % e) from e

        for tier, cidrs in (("public", self.public_subnet_cidrs), ("private", self.private_subnet_cidrs)):
            if len(cidrs) != self.zone_count:
                raise ValueError(
                    "Expected %d %s subnets (one per zone), got %d" % (self.zone_count, tier, len(cidrs))
                )

        for subnet in subnets:
            if subnet.version != vpc.version or not subnet.subnet_of(vpc):
                raise ValueError("Subnet %s is not inside %s" % (subnet, vpc))

        for i, a in enumerate(subnets):
            for b in subnets[i + 1:]:
                if a.overlaps(b):
                    raise ValueError("Subnets %s and %s overlap" % (a, b))

    @property
    def subnet_cidrs(self) -> Tuple[str, ...]:
        return self.public_subnet_cidrs + self.private_subnet_cidrs


@dataclass(frozen=True)
class ClusterSettings:
    container_insights: bool = False


@dataclass(frozen=True)
class ServiceSettings:
    """
        Sizing of the application service. Defaults match what has been
        running so far; override per environment when needed.
    """
    task_cpu: int = 256
    task_memory: int = 512
    desired_count: int = 1
    health_check_path: str = "/"
    health_check_interval: int = 30
    health_check_timeout: int = 5
    healthy_threshold: int = 2
    unhealthy_threshold: int = 2
    listener_rule_priority: int = 100
    max_image_count: int = 10


@dataclass(frozen=True)
class InfraConfig:
    project_name: str
    environment: str
    region: str
    app_domain_name: str
    hosted_zone_name: str
    state: StateLocation
    account: Optional[str] = None
    app_port: int = 80
    image_tag: str = "latest"
    network: NetworkSettings = field(default_factory=NetworkSettings)
    cluster: ClusterSettings = field(default_factory=ClusterSettings)
    service: ServiceSettings = field(default_factory=ServiceSettings)

    @property
    def is_production(self) -> bool:
        return self.environment == PRODUCTION

    @property
    def tags(self) -> dict:
        return {"Environment": self.environment, "Project": self.project_name}

    def resource_name(self, suffix: str) -> str:
        return "%s-%s-%s" % (self.project_name, self.environment, suffix)

    def stack_name(self, state_id: str) -> str:
        return self.resource_name(state_id)

    def cdk_environment(self) -> cdk.Environment:
        return cdk.Environment(account=self.account, region=self.region)


def _parse_port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise ValueError("APP_PORT must be an integer, got %r" % value)
    if not 0 < port < 65536:
        raise ValueError("APP_PORT out of range: %d" % port)
    return port


def load_config(environ=None) -> InfraConfig:
    """
        Builds the configuration from environment variables, applying
        defaults for anything unset.

        Parmeters
        ---------
        environ : dict
            Mapping to read from. Defaults to os.environ

        Returns
        ---------
        A validated InfraConfig

        Raises
        ---------
        ValueError
            if CDK_DEFAULT_ACCOUNT is unset or empty, if APP_PORT is not a
            valid port or if the network plan is invalid
    """
    if environ is None:
        environ = os.environ

    account = environ.get("CDK_DEFAULT_ACCOUNT")
    if not account:
        raise ValueError(
            "CDK_DEFAULT_ACCOUNT must be set to the target AWS account id; "
            "the hosted zone lookups cannot run without it"
        )

    environment = environ.get("APP_ENV", "development")
    region = environ.get("AWS_REGION", "ca-central-1")

    config = InfraConfig(
        project_name=environ.get("PROJECT_NAME", "local-project"),
        environment=environment,
        region=region,
        account=account,
        app_domain_name=environ.get("APP_DOMAIN_NAME", "app1.example.com"),
        hosted_zone_name=environ.get("ROUTE53_HOSTED_ZONE_NAME", "dev.example.com"),
        app_port=_parse_port(environ.get("APP_PORT", "80")),
        image_tag=environ.get("APP1_CONTAINER_IMAGE_TAG", "latest"),
        state=StateLocation(
            environment=environment,
            region=region,
            bucket=environ.get("REMOTE_BACKEND_BUCKET_NAME") or None,
            lock_table=environ.get("REMOTE_BACKEND_DYNAMODB_TABLE_NAME") or None,
        ),
    )
    config.network.validate()

    if config.state.bucket is None:
        logger.warning("REMOTE_BACKEND_BUCKET_NAME is not set, stack metadata will not name a state bucket")

    return config
