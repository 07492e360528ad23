"""Container image repository for the application
"""

import logging

import aws_cdk as cdk
from aws_cdk import aws_ecr as ecr
from constructs import Construct

from ecs_app_infra import util
from ecs_app_infra.config import InfraConfig
from ecs_app_infra.outputs import EcrRepositoryOutputs

logger = logging.getLogger(__name__)


class EcrRepositoryStack(cdk.Stack):
    """
        A CDK Stack holding the ECR repository the application image is
        pushed to. It is kept apart from the application stack so that the
        repository exists before the first image is built.
    """

    STATE_ID = "ecrrepo"

    def __init__(self, scope: Construct, id: str, config: InfraConfig, **kwargs):
        super().__init__(scope, id, **util.stack_options(config, self.STATE_ID, kwargs))

        util.apply_stack_conventions(self, config, self.STATE_ID)

        '''
            ECR Repo
        '''
        repo_name = config.resource_name("app1")
        self.repository = ecr.Repository(
            self, "ecr_repository",
            repository_name=repo_name,
            image_tag_mutability=ecr.TagMutability.MUTABLE,
            empty_on_delete=True,
            removal_policy=cdk.RemovalPolicy.DESTROY,
            lifecycle_rules=[
                ecr.LifecycleRule(
                    description="Keep last %d images" % config.service.max_image_count,
                    max_image_count=config.service.max_image_count,
                )
            ],
        )
        util.tag_resource(self.repository, repo_name)
        logger.debug("Declared ECR repository %s", repo_name)

        '''
            Exports
        '''
        cdk.CfnOutput(
            self, "repository_name", description="Application image repository name",
            value=self.repository.repository_name
        )
        cdk.CfnOutput(
            self, "repository_uri", description="Application image repository URI",
            value=self.repository.repository_uri
        )

        self._outputs = EcrRepositoryOutputs(repository_name=self.repository.repository_name)

    @property
    def outputs(self) -> EcrRepositoryOutputs:
        return self._outputs
