#!/usr/bin/env python3

import logging
import os
import sys

import aws_cdk as cdk
from dotenv import load_dotenv

from ecs_app_infra.config import load_config
from ecs_app_infra.infra_app import build_stacks

logger = logging.getLogger("ecs_app_infra")


def main():
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    '''
        Values already present in the environment win over the dotenv file
    '''
    load_dotenv(".env.%s" % os.environ.get("APP_ENV", "development"))

    try:
        config = load_config()
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    logger.info(
        "Synthesizing %s/%s in %s", config.project_name, config.environment, config.region
    )

    app = cdk.App()
    try:
        build_stacks(app, config)
        app.synth()
    except Exception:
        logger.exception("Synthesis aborted")
        sys.exit(1)


if __name__ == "__main__":
    main()
