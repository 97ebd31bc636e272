import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)


def get_cloudformation_stack_id(
    stack_name: str, region: str, profile: str | None = None
) -> str:
    """Return the CloudFormation stack id, or "" if it can't be looked up.

    Never raises: a stack that isn't deployed yet or missing credentials must not block
    the deployment.
    """
    try:
        session = boto3.Session(profile_name=profile, region_name=region)
        response = session.client("cloudformation").describe_stacks(StackName=stack_name)
        return response["Stacks"][0]["StackId"]
    except (BotoCoreError, ClientError, KeyError, IndexError) as e:
        logger.debug("Could not look up stack id for '%s': %s", stack_name, e)
        return ""
