"""Resources shared by every service of the environment: the load balancer,
its certificate and the ECS cluster
"""

import logging
from dataclasses import dataclass

import aws_cdk as cdk
from aws_cdk import (
    aws_certificatemanager as acm,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_route53 as route53,
)
from constructs import Construct

from ecs_app_infra import util
from ecs_app_infra.config import PRODUCTION, InfraConfig
from ecs_app_infra.outputs import NetworkingOutputs, SharedInfrastructureOutputs

logger = logging.getLogger(__name__)

FARGATE = "FARGATE"
FARGATE_SPOT = "FARGATE_SPOT"


@dataclass(frozen=True)
class CapacityProviderStrategy:
    capacity_provider: str
    weight: int = 1
    base: int = 1


def capacity_provider_strategy(environment: str) -> CapacityProviderStrategy:
    """
        Production runs on on-demand Fargate capacity, every other
        environment runs on Fargate Spot.
    """
    if environment == PRODUCTION:
        return CapacityProviderStrategy(FARGATE)
    return CapacityProviderStrategy(FARGATE_SPOT)


class SharedInfrastructureStack(cdk.Stack):
    """
        A CDK Stack representing the resources shared by the application
        services: a wildcard certificate, one internet facing load
        balancer with HTTP and HTTPS listeners, and the ECS cluster.

        Services attach to the HTTPS listener with their own host-header
        rules; unmatched requests get a 404.
    """

    STATE_ID = "common-resource"

    def __init__(self, scope: Construct, id: str, config: InfraConfig,
                 networking: NetworkingOutputs, **kwargs):
        super().__init__(scope, id, **util.stack_options(config, self.STATE_ID, kwargs))

        util.apply_stack_conventions(self, config, self.STATE_ID)

        '''
            Route53 zone and wildcard certificate
        '''
        zone = route53.HostedZone.from_lookup(
            self, "route53_zone", domain_name=config.hosted_zone_name
        )

        # DNS validation creates one record per domain validation option
        self.certificate = acm.Certificate(
            self, "acm_certificate",
            certificate_name=config.resource_name("certificate"),
            domain_name="*.%s" % config.hosted_zone_name,
            validation=acm.CertificateValidation.from_dns(zone),
        )

        '''
            Networking imported from the networking stack
        '''
        vpc = ec2.Vpc.from_vpc_attributes(
            self, "vpc",
            vpc_id=networking.vpc_id,
            availability_zones=list(networking.availability_zones),
            public_subnet_ids=list(networking.public_subnet_ids),
        )

        '''
            ECS Cluster
        '''
        cluster_name = config.resource_name("ecs-cluster")
        strategy = capacity_provider_strategy(config.environment)
        self.cluster = ecs.Cluster(
            self, "ecs_cluster",
            cluster_name=cluster_name,
            vpc=vpc,
            enable_fargate_capacity_providers=True,
            container_insights=config.cluster.container_insights,
        )
        self.cluster.add_default_capacity_provider_strategy([
            ecs.CapacityProviderStrategy(
                capacity_provider=strategy.capacity_provider,
                weight=strategy.weight,
                base=strategy.base,
            )
        ])
        util.tag_resource(self.cluster, cluster_name)
        logger.debug("Cluster %s uses %s", cluster_name, strategy.capacity_provider)

        '''
            Load Balancer
        '''
        sg_name = config.resource_name("lb-security-group")
        self.lb_security_group = ec2.SecurityGroup(
            self, "lb_security_group",
            vpc=vpc,
            security_group_name=sg_name,
            description="Security group for Load Balancer",
            allow_all_outbound=True,
        )
        self.lb_security_group.add_ingress_rule(ec2.Peer.any_ipv4(), ec2.Port.tcp(80), "HTTP")
        self.lb_security_group.add_ingress_rule(ec2.Peer.any_ipv4(), ec2.Port.tcp(443), "HTTPS")
        util.tag_resource(self.lb_security_group, sg_name)

        lb_name = config.resource_name("lb")
        self.load_balancer = elbv2.ApplicationLoadBalancer(
            self, "load_balancer",
            vpc=vpc,
            load_balancer_name=lb_name,
            internet_facing=True,
            security_group=self.lb_security_group,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
            deletion_protection=False,
            idle_timeout=cdk.Duration.seconds(60),
        )
        util.tag_resource(self.load_balancer, lb_name)

        # ingress is declared on the security group above
        self.load_balancer.add_listener(
            "load_balancer_listener",
            port=80,
            protocol=elbv2.ApplicationProtocol.HTTP,
            open=False,
            default_action=elbv2.ListenerAction.redirect(
                host="#{host}",
                path="/#{path}",
                port="443",
                protocol="HTTPS",
                query="#{query}",
                permanent=True,
            ),
        )

        self.https_listener = self.load_balancer.add_listener(
            "load_balancer_listener_https",
            port=443,
            protocol=elbv2.ApplicationProtocol.HTTPS,
            open=False,
            certificates=[elbv2.ListenerCertificate.from_certificate_manager(self.certificate)],
            default_action=elbv2.ListenerAction.fixed_response(
                404,
                content_type="text/plain",
                message_body="Page is not found",
            ),
        )

        '''
            Exports
        '''
        cdk.CfnOutput(self, "ecs_cluster_name", description="ECS cluster name",
                      value=self.cluster.cluster_name)
        cdk.CfnOutput(self, "load_balancer_dns_name", description="Load balancer DNS name",
                      value=self.load_balancer.load_balancer_dns_name)

        self._outputs = SharedInfrastructureOutputs(
            cluster_name=self.cluster.cluster_name,
            load_balancer_arn=self.load_balancer.load_balancer_arn,
            load_balancer_dns_name=self.load_balancer.load_balancer_dns_name,
            load_balancer_zone_id=self.load_balancer.load_balancer_canonical_hosted_zone_id,
            load_balancer_security_group_id=self.lb_security_group.security_group_id,
            https_listener_arn=self.https_listener.listener_arn,
        )

    @property
    def outputs(self) -> SharedInfrastructureOutputs:
        return self._outputs
