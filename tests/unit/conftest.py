import aws_cdk as cdk
import pytest

from ecs_app_infra.config import InfraConfig, StateLocation
from ecs_app_infra.outputs import (
    EcrRepositoryOutputs,
    NetworkingOutputs,
    SharedInfrastructureOutputs,
)

ACCOUNT = "123456789012"
REGION = "us-east-1"
ZONE_ID = "Z0123456789EXAMPLE"


def make_config(environment="production", **overrides) -> InfraConfig:
    values = dict(
        project_name="acme",
        environment=environment,
        region=REGION,
        account=ACCOUNT,
        app_domain_name="app1.acme.com",
        hosted_zone_name="acme.com",
        app_port=8080,
        image_tag="v1.2.3",
        state=StateLocation(
            environment=environment,
            region=REGION,
            bucket="acme-terraform-state",
            lock_table="acme-terraform-locks",
        ),
    )
    values.update(overrides)
    return InfraConfig(**values)


def make_app(config: InfraConfig, outdir: str = None) -> cdk.App:
    '''
        An App with the hosted zone lookup already answered, so synthesis
        never needs AWS credentials
    '''
    key = "hosted-zone:account=%s:domainName=%s:region=%s" % (
        config.account, config.hosted_zone_name, config.region
    )
    return cdk.App(outdir=outdir, context={
        key: {"Id": "/hostedzone/%s" % ZONE_ID, "Name": "%s." % config.hosted_zone_name}
    })


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def app(config):
    return make_app(config)


@pytest.fixture
def ecr_outputs():
    return EcrRepositoryOutputs(repository_name="acme-production-app1")


@pytest.fixture
def networking_outputs():
    return NetworkingOutputs(
        vpc_id="vpc-0abc",
        public_subnet_ids=("subnet-pub1", "subnet-pub2", "subnet-pub3"),
        private_subnet_ids=("subnet-prv1", "subnet-prv2", "subnet-prv3"),
        availability_zones=("us-east-1a", "us-east-1b", "us-east-1c"),
    )


@pytest.fixture
def shared_outputs():
    return SharedInfrastructureOutputs(
        cluster_name="acme-production-ecs-cluster",
        load_balancer_arn="arn:aws:elasticloadbalancing:us-east-1:123456789012:loadbalancer/app/acme-production-lb/abc",
        load_balancer_dns_name="acme-production-lb-123.us-east-1.elb.amazonaws.com",
        load_balancer_zone_id="Z35SXDOTRQ7X7K",
        load_balancer_security_group_id="sg-0lb",
        https_listener_arn="arn:aws:elasticloadbalancing:us-east-1:123456789012:listener/app/acme-production-lb/abc/def",
    )
