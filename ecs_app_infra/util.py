"""This module contains shared utilities used by the various stack classes
"""

import aws_cdk as cdk

from ecs_app_infra.config import InfraConfig


def stack_options(config: InfraConfig, state_id: str, kwargs: dict) -> dict:
    """
        Fills in the Stack keyword arguments every stack of this app shares

        Parmeters
        ---------
        config : InfraConfig
            The application configuration
        state_id : str
            The stack's state id, e.g. "networking"
        kwargs : dict
            Keyword arguments supplied by the caller. Explicit values win.

        Returns
        ---------
        A new dict with env and stack_name filled in
    """
    options = dict(kwargs)
    options.setdefault("env", config.cdk_environment())
    options.setdefault("stack_name", config.stack_name(state_id))

    return options


def apply_stack_conventions(stack: cdk.Stack, config: InfraConfig, state_id: str):
    """
        Tags every resource of the stack and records where its state lives

        Parmeters
        ---------
        stack : cdk.Stack
            The stack being built
        config : InfraConfig
            The application configuration
        state_id : str
            The stack's state id

        Returns
        ---------
        None
    """
    for key, value in config.tags.items():
        cdk.Tags.of(stack).add(key, value)

    backend = {
        "Key": config.state.key_for(state_id),
        "Region": config.state.region,
        "Encrypt": True,
    }
    if config.state.bucket:
        backend["Bucket"] = config.state.bucket
    if config.state.lock_table:
        backend["LockTable"] = config.state.lock_table

    stack.template_options.metadata = {"StateBackend": backend}


def tag_resource(resource: object, name: str, description: str = None):
    """
        Applies a consistent set of tags to a CDK resource

        Parmeters
        ---------
        resource : object
            The CDK resource to be tagged

        name : str
            Value of the "Name" tag

        description : str
            Value of the "Description" tag, if any

        Returns
        ---------
        None
    """
    cdk.Tags.of(resource).add("Name", name)
    if description:
        cdk.Tags.of(resource).add("Description", description)
