"""CDK stacks for the deployment foundation."""

from .cloudfront_manager_stack import CloudfrontManagerStack
from .lambda_manager_stack import LambdaManagerStack

__all__ = ["CloudfrontManagerStack", "LambdaManagerStack"]
