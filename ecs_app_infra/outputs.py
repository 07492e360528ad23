"""Output records passed from one stack to the stacks that depend on it.

Values are CDK tokens while the app is being built; CloudFormation
exports and imports are generated for them when they cross a stack
boundary.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class EcrRepositoryOutputs:
    repository_name: str


@dataclass(frozen=True)
class NetworkingOutputs:
    vpc_id: str
    public_subnet_ids: Tuple[str, ...]
    private_subnet_ids: Tuple[str, ...]
    availability_zones: Tuple[str, ...]


@dataclass(frozen=True)
class SharedInfrastructureOutputs:
    cluster_name: str
    load_balancer_arn: str
    load_balancer_dns_name: str
    load_balancer_zone_id: str
    load_balancer_security_group_id: str
    https_listener_arn: str


@dataclass(frozen=True)
class ApplicationOutputs:
    application_url: str
