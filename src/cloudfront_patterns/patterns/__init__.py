"""
Infrastructure patterns combining the constructs into complete CloudFront deployments.
"""

from .cloudfront_to_api_gateway import CloudFrontToApiGatewayPattern
from .cloudfront_to_s3 import CloudFrontToS3Pattern

__all__ = [
    "CloudFrontToApiGatewayPattern",
    "CloudFrontToS3Pattern",
]
