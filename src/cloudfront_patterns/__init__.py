"""
CloudFront Patterns - CloudFormation building blocks for CloudFront distributions
in front of S3 buckets and API Gateway REST APIs.
"""

__version__ = "1.0.0"

from .constructs.distribution import (
    ApiEndpoint,
    DistributionProps,
    LoggingConfig,
    cloudfront_distribution_for_api_gateway,
    cloudfront_distribution_for_s3,
)
from .patterns import CloudFrontToApiGatewayPattern, CloudFrontToS3Pattern

__all__ = [
    "ApiEndpoint",
    "DistributionProps",
    "LoggingConfig",
    "cloudfront_distribution_for_api_gateway",
    "cloudfront_distribution_for_s3",
    "CloudFrontToApiGatewayPattern",
    "CloudFrontToS3Pattern",
]
