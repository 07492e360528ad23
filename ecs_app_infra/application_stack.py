"""The application service: task definition, Fargate service, routing and DNS
"""

import logging

import aws_cdk as cdk
from aws_cdk import (
    aws_ec2 as ec2,
    aws_ecr as ecr,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_iam as iam,
    aws_logs as logs,
    aws_route53 as route53,
    aws_route53_targets as route53_targets,
)
from constructs import Construct

from ecs_app_infra import util
from ecs_app_infra.config import InfraConfig
from ecs_app_infra.outputs import (
    ApplicationOutputs,
    EcrRepositoryOutputs,
    NetworkingOutputs,
    SharedInfrastructureOutputs,
)

logger = logging.getLogger(__name__)

CONTAINER_NAME = "app"
ECS_TASKS_PRINCIPAL = "ecs-tasks.amazonaws.com"


class ApplicationStack(cdk.Stack):
    """
        A CDK Stack representing the application service.

        The service runs on Fargate in the private subnets of the shared
        cluster. It is published through the shared HTTPS listener with a
        host-header rule, and a DNS alias points at the shared load
        balancer.
    """

    STATE_ID = "application"

    def __init__(self, scope: Construct, id: str, config: InfraConfig,
                 ecr_repository: EcrRepositoryOutputs,
                 networking: NetworkingOutputs,
                 shared: SharedInfrastructureOutputs,
                 **kwargs):
        super().__init__(scope, id, **util.stack_options(config, self.STATE_ID, kwargs))

        util.apply_stack_conventions(self, config, self.STATE_ID)
        self.config = config
        settings = config.service
        app_port = config.app_port

        self.repository = ecr.Repository.from_repository_name(
            self, "ecr_repository", ecr_repository.repository_name
        )

        '''
            Networking, cluster and listener imported from the other stacks
        '''
        self.vpc = ec2.Vpc.from_vpc_attributes(
            self, "vpc",
            vpc_id=networking.vpc_id,
            availability_zones=list(networking.availability_zones),
            private_subnet_ids=list(networking.private_subnet_ids),
        )
        cluster = ecs.Cluster.from_cluster_attributes(
            self, "ecs_cluster", cluster_name=shared.cluster_name, vpc=self.vpc
        )
        lb_security_group = ec2.SecurityGroup.from_security_group_id(
            self, "lb_security_group", shared.load_balancer_security_group_id, mutable=False
        )
        https_listener = elbv2.ApplicationListener.from_application_listener_attributes(
            self, "https_listener",
            listener_arn=shared.https_listener_arn,
            security_group=lb_security_group,
        )

        '''
            IAM Role and Policy used by Fargate to pull the image and ship logs
        '''
        self.execution_policy = iam.ManagedPolicy(
            self, "ecs_task_execution_policy",
            managed_policy_name=config.resource_name("ecs-task-execution-policy"),
        )
        self.execution_policy.add_statements(iam.PolicyStatement(actions=[
                "logs:CreateLogGroup",
                "logs:CreateLogStream",
                "logs:PutLogEvents"
            ], effect=iam.Effect.ALLOW, resources=["*"]
        ))
        # token issuance cannot be scoped to a repository
        self.execution_policy.add_statements(iam.PolicyStatement(actions=[
                "ecr:GetAuthorizationToken"
            ], effect=iam.Effect.ALLOW, resources=["*"]
        ))
        self.execution_policy.add_statements(iam.PolicyStatement(actions=[
                "ecr:BatchCheckLayerAvailability",
                "ecr:GetDownloadUrlForLayer",
                "ecr:BatchGetImage"
            ], effect=iam.Effect.ALLOW, resources=[self.repository.repository_arn]
        ))

        self.execution_role = self.make_ecs_role(
            "ecs_task_execution_role", "ecs-task-execution-role",
            managed_policies=[self.execution_policy]
        )

        '''
            IAM Role assumed by the application itself. It has no
            permissions; add statements here when the application needs
            to call AWS APIs.
        '''
        self.task_role = self.make_ecs_role("ecs_task_role", "ecs-task-role")

        '''
            Task Definition
        '''
        log_group = logs.LogGroup(
            self, "log_group",
            log_group_name="/ecs/%s" % config.resource_name("app1"),
            retention=logs.RetentionDays.ONE_MONTH,
            removal_policy=cdk.RemovalPolicy.DESTROY,
        )

        family = config.resource_name("task")
        # permissions come from the execution policy only
        self.task_definition = ecs.FargateTaskDefinition(
            self, "ecs_task_definition",
            family=family,
            cpu=settings.task_cpu,
            memory_limit_mib=settings.task_memory,
            execution_role=self.execution_role.without_policy_updates(),
            task_role=self.task_role,
        )
        self.task_definition.add_container(
            "app_container",
            container_name=CONTAINER_NAME,
            image=ecs.ContainerImage.from_ecr_repository(self.repository, tag=config.image_tag),
            cpu=settings.task_cpu,
            memory_limit_mib=settings.task_memory,
            essential=True,
            port_mappings=[
                ecs.PortMapping(container_port=app_port, host_port=app_port, protocol=ecs.Protocol.TCP)
            ],
            logging=ecs.LogDrivers.aws_logs(stream_prefix="app1", log_group=log_group),
        )
        util.tag_resource(self.task_definition, family)

        '''
            Security Group for the service, reachable only from the load balancer
        '''
        sg_name = config.resource_name("ecs-security-group")
        self.security_group = ec2.SecurityGroup(
            self, "ecs_security_group",
            vpc=self.vpc,
            security_group_name=sg_name,
            description="Security group for ECS service",
            allow_all_outbound=True,
        )
        self.security_group.add_ingress_rule(
            lb_security_group, ec2.Port.tcp(app_port), "Allow traffic from load balancer"
        )
        util.tag_resource(self.security_group, sg_name)

        '''
            Target Group and HTTPS listener rule
        '''
        self.target_group = elbv2.ApplicationTargetGroup(
            self, "load_balancer_target_group",
            vpc=self.vpc,
            port=app_port,
            protocol=elbv2.ApplicationProtocol.HTTP,
            target_type=elbv2.TargetType.IP,
            health_check=elbv2.HealthCheck(
                path=settings.health_check_path,
                interval=cdk.Duration.seconds(settings.health_check_interval),
                timeout=cdk.Duration.seconds(settings.health_check_timeout),
                healthy_threshold_count=settings.healthy_threshold,
                unhealthy_threshold_count=settings.unhealthy_threshold,
            ),
        )
        util.tag_resource(self.target_group, config.resource_name("app1-tg"))

        self.listener_rule = elbv2.ApplicationListenerRule(
            self, "load_balancer_listener_rule",
            listener=https_listener,
            priority=settings.listener_rule_priority,
            conditions=[elbv2.ListenerCondition.host_headers([config.app_domain_name])],
            action=elbv2.ListenerAction.forward([self.target_group]),
        )

        '''
            ECS Service
        '''
        service_name = config.resource_name("ecs-service")
        self.service = ecs.FargateService(
            self, "ecs_service",
            cluster=cluster,
            task_definition=self.task_definition,
            service_name=service_name,
            desired_count=settings.desired_count,
            min_healthy_percent=100,
            security_groups=[self.security_group],
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS),
            assign_public_ip=False,
        )
        # also makes the service wait for the listener rule
        self.service.attach_to_application_target_group(self.target_group)
        util.tag_resource(self.service, service_name)

        '''
            DNS
        '''
        zone = route53.HostedZone.from_lookup(
            self, "route53_zone", domain_name=config.hosted_zone_name
        )
        load_balancer = elbv2.ApplicationLoadBalancer.from_application_load_balancer_attributes(
            self, "load_balancer",
            load_balancer_arn=shared.load_balancer_arn,
            load_balancer_dns_name=shared.load_balancer_dns_name,
            load_balancer_canonical_hosted_zone_id=shared.load_balancer_zone_id,
            security_group_id=shared.load_balancer_security_group_id,
        )
        self.dns_record = route53.ARecord(
            self, "app1_dns_record",
            zone=zone,
            record_name="app1",
            target=route53.RecordTarget.from_alias(
                route53_targets.LoadBalancerTarget(load_balancer, evaluate_target_health=True)
            ),
        )
        logger.debug("Declared service %s for %s", service_name, config.app_domain_name)

        '''
            Outputs
        '''
        application_url = "https://%s" % config.app_domain_name
        cdk.CfnOutput(
            self, "application_url", description="Public URL of the application",
            value=application_url
        )

        self._outputs = ApplicationOutputs(application_url=application_url)

    @property
    def outputs(self) -> ApplicationOutputs:
        return self._outputs

    def make_ecs_role(self, construct_id: str, name_suffix: str, managed_policies: list = None) -> iam.Role:
        '''
            Creates a role that ECS tasks can assume

            Parameters
            ----------
            construct_id : str
                id of the construct
            name_suffix : str
                suffix of the role name. The full name is
                PROJECT-ENVIRONMENT-name_suffix
            managed_policies : list
                policies attached to the role
        '''
        role_name = self.config.resource_name(name_suffix)
        role = iam.Role(
            self, construct_id,
            role_name=role_name,
            path="/ecs/",
            assumed_by=iam.ServicePrincipal(ECS_TASKS_PRINCIPAL),
            managed_policies=managed_policies,
        )
        util.tag_resource(role, role_name)

        return role
