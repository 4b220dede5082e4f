"""
Infrastructure constructs for building CloudFront, S3 and Lambda resources.
"""

from .compute import create_security_headers_function, deploy_lambda_function
from .distribution import (
    cloudfront_distribution_for_api_gateway,
    cloudfront_distribution_for_s3,
    create_distribution,
)
from .storage import create_cloudfront_logging_bucket, deploy_bucket

__all__ = [
    "cloudfront_distribution_for_api_gateway",
    "cloudfront_distribution_for_s3",
    "create_distribution",
    "create_cloudfront_logging_bucket",
    "create_security_headers_function",
    "deploy_bucket",
    "deploy_lambda_function",
]
