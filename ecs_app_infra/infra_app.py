"""Builds the four stacks in dependency order
"""

import logging
from dataclasses import dataclass

from constructs import Construct

from ecs_app_infra.application_stack import ApplicationStack
from ecs_app_infra.config import InfraConfig
from ecs_app_infra.ecr_repository_stack import EcrRepositoryStack
from ecs_app_infra.networking_stack import NetworkingStack
from ecs_app_infra.shared_infrastructure_stack import SharedInfrastructureStack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InfraStacks:
    ecr_repository: EcrRepositoryStack
    networking: NetworkingStack
    shared: SharedInfrastructureStack
    application: ApplicationStack


def build_stacks(scope: Construct, config: InfraConfig) -> InfraStacks:
    """
        Declares every stack of the application under scope.

        Each stack only receives the output records of the stacks it
        depends on, so construction order follows the data flow:
        ECR and networking first, then the shared resources, then the
        application.

        Parmeters
        ---------
        scope : Construct
            Usually the cdk.App
        config : InfraConfig
            The application configuration

        Returns
        ---------
        An InfraStacks holding the four stacks
    """
    ecr_repository = EcrRepositoryStack(scope, "EcrStack", config)
    logger.info("Declared %s", ecr_repository.stack_name)

    networking = NetworkingStack(scope, "Networking", config)
    logger.info("Declared %s", networking.stack_name)

    shared = SharedInfrastructureStack(
        scope, "CommonResource", config, networking=networking.outputs
    )
    logger.info("Declared %s", shared.stack_name)

    application = ApplicationStack(
        scope, "Application", config,
        ecr_repository=ecr_repository.outputs,
        networking=networking.outputs,
        shared=shared.outputs,
    )
    logger.info("Declared %s", application.stack_name)

    return InfraStacks(
        ecr_repository=ecr_repository,
        networking=networking,
        shared=shared,
        application=application,
    )
