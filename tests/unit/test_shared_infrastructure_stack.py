import dataclasses

import pytest
from aws_cdk.assertions import Match, Template

from ecs_app_infra.shared_infrastructure_stack import (
    CapacityProviderStrategy,
    SharedInfrastructureStack,
    capacity_provider_strategy,
)

from conftest import ZONE_ID, make_app, make_config


def get_stack(app, config, networking_outputs):
    return SharedInfrastructureStack(app, "CommonResource", config, networking=networking_outputs)


def get_template(app, config, networking_outputs):
    return Template.from_stack(get_stack(app, config, networking_outputs))


def test_production_uses_on_demand_capacity():
    assert capacity_provider_strategy("production") == CapacityProviderStrategy("FARGATE", weight=1, base=1)


@pytest.mark.parametrize("environment", ["staging", "development", "Production", "PRODUCTION", "production-eu", ""])
def test_other_environments_use_spot_capacity(environment):
    assert capacity_provider_strategy(environment) == CapacityProviderStrategy("FARGATE_SPOT", weight=1, base=1)


@pytest.mark.parametrize("environment,provider", [
    ("production", "FARGATE"),
    ("staging", "FARGATE_SPOT"),
])
def test_cluster_capacity_strategy(environment, provider, networking_outputs):
    config = make_config(environment=environment)
    template = get_template(make_app(config), config, networking_outputs)

    template.has_resource_properties("AWS::ECS::Cluster", {
        "ClusterName": "acme-%s-ecs-cluster" % environment,
    })
    template.has_resource_properties("AWS::ECS::ClusterCapacityProviderAssociations", {
        "CapacityProviders": ["FARGATE", "FARGATE_SPOT"],
        "DefaultCapacityProviderStrategy": [
            {"CapacityProvider": provider, "Weight": 1, "Base": 1}
        ],
    })


def test_wildcard_certificate_validated_in_zone(app, config, networking_outputs):
    template = get_template(app, config, networking_outputs)

    template.has_resource_properties("AWS::CertificateManager::Certificate", {
        "DomainName": "*.acme.com",
        "ValidationMethod": "DNS",
        "DomainValidationOptions": [
            {"DomainName": "*.acme.com", "HostedZoneId": ZONE_ID}
        ],
    })


def test_load_balancer(app, config, networking_outputs):
    template = get_template(app, config, networking_outputs)

    template.has_resource_properties("AWS::ElasticLoadBalancingV2::LoadBalancer", {
        "Name": "acme-production-lb",
        "Scheme": "internet-facing",
        "Type": "application",
        "Subnets": ["subnet-pub1", "subnet-pub2", "subnet-pub3"],
        "LoadBalancerAttributes": Match.array_with([
            {"Key": "idle_timeout.timeout_seconds", "Value": "60"},
        ]),
    })


def test_load_balancer_security_group(app, config, networking_outputs):
    template = get_template(app, config, networking_outputs)

    template.has_resource_properties("AWS::EC2::SecurityGroup", {
        "VpcId": "vpc-0abc",
        "SecurityGroupIngress": [
            {"IpProtocol": "tcp", "FromPort": 80, "ToPort": 80, "CidrIp": "0.0.0.0/0"},
            {"IpProtocol": "tcp", "FromPort": 443, "ToPort": 443, "CidrIp": "0.0.0.0/0"},
        ],
        "SecurityGroupEgress": [{"IpProtocol": "-1", "CidrIp": "0.0.0.0/0"}],
    })


def test_http_listener_redirects_to_https(app, config, networking_outputs):
    template = get_template(app, config, networking_outputs)

    template.has_resource_properties("AWS::ElasticLoadBalancingV2::Listener", {
        "Port": 80,
        "Protocol": "HTTP",
        "DefaultActions": [{
            "Type": "redirect",
            "RedirectConfig": {
                "Host": "#{host}",
                "Path": "/#{path}",
                "Port": "443",
                "Protocol": "HTTPS",
                "Query": "#{query}",
                "StatusCode": "HTTP_301",
            },
        }],
    })


def test_https_listener_defaults_to_not_found(app, config, networking_outputs):
    template = get_template(app, config, networking_outputs)

    template.has_resource_properties("AWS::ElasticLoadBalancingV2::Listener", {
        "Port": 443,
        "Protocol": "HTTPS",
        "Certificates": [{"CertificateArn": Match.any_value()}],
        "DefaultActions": [{
            "Type": "fixed-response",
            "FixedResponseConfig": {
                "ContentType": "text/plain",
                "MessageBody": "Page is not found",
                "StatusCode": "404",
            },
        }],
    })


def test_outputs(app, config, networking_outputs):
    outputs = get_stack(app, config, networking_outputs).outputs

    assert outputs.cluster_name
    assert outputs.load_balancer_arn
    assert outputs.load_balancer_dns_name
    assert outputs.load_balancer_zone_id
    assert outputs.load_balancer_security_group_id
    assert outputs.https_listener_arn


def test_subnets_are_spread_over_the_networking_zones(app, config, networking_outputs):
    networking = dataclasses.replace(
        networking_outputs, availability_zones=networking_outputs.availability_zones[:2]
    )

    with pytest.raises(Exception, match="availability zones"):
        get_stack(app, config, networking)
