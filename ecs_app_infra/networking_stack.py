"""VPC, subnets and egress for the application
"""

import logging

import aws_cdk as cdk
from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from ecs_app_infra import util
from ecs_app_infra.config import InfraConfig
from ecs_app_infra.outputs import NetworkingOutputs

logger = logging.getLogger(__name__)

ANYWHERE = "0.0.0.0/0"


class NetworkingStack(cdk.Stack):
    """
        A CDK Stack representing the network of the application.

        Public and private subnets are declared with fixed address blocks,
        one of each per availability zone. All private subnets leave the
        VPC through a single NAT gateway in the first public subnet, so an
        outage of that zone takes down egress for every private subnet.
        This keeps the NAT cost to one gateway.
    """

    STATE_ID = "networking"

    def __init__(self, scope: Construct, id: str, config: InfraConfig, **kwargs):
        super().__init__(scope, id, **util.stack_options(config, self.STATE_ID, kwargs))

        util.apply_stack_conventions(self, config, self.STATE_ID)
        self.config = config
        network = config.network
        network.validate()

        '''
            Zones are resolved when the template is deployed
        '''
        self.zones = [
            cdk.Fn.select(i, cdk.Fn.get_azs()) for i in range(network.zone_count)
        ]

        '''
            VPC
        '''
        vpc_name = config.resource_name("vpc")
        self.vpc = ec2.CfnVPC(
            self, "vpc",
            cidr_block=network.vpc_cidr,
            enable_dns_hostnames=True,
            enable_dns_support=True,
        )
        util.tag_resource(self.vpc, vpc_name)

        igw = ec2.CfnInternetGateway(self, "internet_gateway")
        util.tag_resource(igw, config.resource_name("igw"))
        igw_attachment = ec2.CfnVPCGatewayAttachment(
            self, "internet_gateway_attachment",
            vpc_id=self.vpc.ref, internet_gateway_id=igw.ref
        )

        '''
            Public subnets, routed through the internet gateway
        '''
        public_route_table = self.make_route_table("public")
        public_route = ec2.CfnRoute(
            self, "public_default_route",
            route_table_id=public_route_table.ref,
            destination_cidr_block=ANYWHERE,
            gateway_id=igw.ref,
        )
        public_route.add_dependency(igw_attachment)

        self.public_subnets = [
            self.make_subnet("public", i, cidr, public_route_table)
            for i, cidr in enumerate(network.public_subnet_cidrs)
        ]

        '''
            Single shared NAT gateway
        '''
        nat_eip = ec2.CfnEIP(self, "nat_eip", domain="vpc")
        nat_eip.add_dependency(igw_attachment)
        util.tag_resource(nat_eip, config.resource_name("nat-eip"))

        self.nat_gateway = ec2.CfnNatGateway(
            self, "nat_gateway",
            allocation_id=nat_eip.attr_allocation_id,
            subnet_id=self.public_subnets[0].ref,
        )
        util.tag_resource(self.nat_gateway, config.resource_name("nat"))

        '''
            Private subnets, sharing one route table through the NAT gateway
        '''
        private_route_table = self.make_route_table("private")
        ec2.CfnRoute(
            self, "private_default_route",
            route_table_id=private_route_table.ref,
            destination_cidr_block=ANYWHERE,
            nat_gateway_id=self.nat_gateway.ref,
        )

        self.private_subnets = [
            self.make_subnet("private", i, cidr, private_route_table)
            for i, cidr in enumerate(network.private_subnet_cidrs)
        ]

        logger.debug(
            "Declared VPC %s with %d public and %d private subnets",
            network.vpc_cidr, len(self.public_subnets), len(self.private_subnets)
        )

        '''
            Exports
        '''
        cdk.CfnOutput(self, "vpc_id", description="VPC id", value=self.vpc.ref)
        cdk.CfnOutput(
            self, "public_subnet_ids", description="Public subnet ids",
            value=cdk.Fn.join(",", [s.ref for s in self.public_subnets])
        )
        cdk.CfnOutput(
            self, "private_subnet_ids", description="Private subnet ids",
            value=cdk.Fn.join(",", [s.ref for s in self.private_subnets])
        )

        self._outputs = NetworkingOutputs(
            vpc_id=self.vpc.ref,
            public_subnet_ids=tuple(s.ref for s in self.public_subnets),
            private_subnet_ids=tuple(s.ref for s in self.private_subnets),
            availability_zones=tuple(self.zones),
        )

    @property
    def outputs(self) -> NetworkingOutputs:
        return self._outputs

    def make_route_table(self, tier: str) -> ec2.CfnRouteTable:
        route_table = ec2.CfnRouteTable(self, "%s_route_table" % tier, vpc_id=self.vpc.ref)
        util.tag_resource(route_table, self.config.resource_name("%s-rt" % tier))
        return route_table

    def make_subnet(self, tier: str, index: int, cidr: str, route_table: ec2.CfnRouteTable) -> ec2.CfnSubnet:
        '''
            Creates a subnet in the index-th zone and associates it with
            the tier's route table

            Parameters
            ----------
            tier : str
                "public" or "private"
            index : int
                zero based position, also selects the availability zone
            cidr : str
                address block of the subnet
            route_table : ec2.CfnRouteTable
                route table of the tier
        '''
        number = index + 1
        subnet = ec2.CfnSubnet(
            self, "%s_subnet_%d" % (tier, number),
            vpc_id=self.vpc.ref,
            cidr_block=cidr,
            availability_zone=self.zones[index],
            map_public_ip_on_launch=(tier == "public"),
        )
        util.tag_resource(subnet, self.config.resource_name("%s-subnet-%d" % (tier, number)))

        ec2.CfnSubnetRouteTableAssociation(
            self, "%s_subnet_%d_route_table_association" % (tier, number),
            subnet_id=subnet.ref,
            route_table_id=route_table.ref,
        )
        return subnet
