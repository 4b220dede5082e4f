"""
Static content pattern using S3 + CloudFront.

This pattern creates:
- S3 bucket for content, kept private
- CloudFront distribution reading the bucket through an origin access identity
- Access logging bucket, unless the configuration names one
- Lambda@Edge function setting HTTP security headers
"""

import logging
from typing import Any, Dict, Optional

from troposphere import Export, GetAtt, Output, Ref, Sub, Template, s3

from ..constructs.distribution import cloudfront_distribution_for_s3
from ..constructs.storage import deploy_bucket
from ._common import add_distribution_outputs, distribution_overrides

logger = logging.getLogger(__name__)


class CloudFrontToS3Pattern:
    """
    Pattern for S3 content served through CloudFront.

    Creates the content bucket (or reuses an existing one) and a
    CloudFront distribution in front of it.
    """

    def __init__(
        self,
        template: Template,
        config: Dict[str, Any],
        environment: str = "dev",
        existing_bucket: Optional[s3.Bucket] = None,
    ):
        """
        Initialize the pattern.

        Args:
            template: CloudFormation template to add resources to
            config: Pattern configuration
            environment: Deployment environment
            existing_bucket: Content bucket already in the template (optional)
        """
        self.template = template
        self.config = config
        self.environment = environment
        self.resources: Dict[str, Any] = {}

        self.s3_config = config.get("s3", {})
        self.cloudfront_config = config.get("cloudfront", {})

        self.content_bucket = existing_bucket
        if self.content_bucket is None:
            self._create_content_bucket()
        self.resources["content_bucket"] = self.content_bucket

        self._create_distribution()
        self._create_outputs()

    def _create_content_bucket(self) -> None:
        """Create the S3 bucket holding the content."""
        bucket_props: Dict[str, Any] = {}

        if "bucket_name" in self.s3_config:
            bucket_props["BucketName"] = self.s3_config["bucket_name"]
        if not self.s3_config.get("versioning", True):
            bucket_props["VersioningConfiguration"] = s3.VersioningConfiguration(
                Status="Suspended"
            )

        self.content_bucket = deploy_bucket(self.template, "ContentBucket", bucket_props)

    def _create_distribution(self) -> None:
        """Create the CloudFront distribution in front of the bucket."""
        self.distribution = cloudfront_distribution_for_s3(
            self.template,
            self.content_bucket,
            distribution_overrides(self.cloudfront_config),
            http_security_headers=self.cloudfront_config.get("http_security_headers"),
        )
        self.resources["distribution"] = self.distribution

        logger.info(f"Created CloudFront to S3 pattern for {self.environment}")

    def _create_outputs(self) -> None:
        """Create CloudFormation outputs."""
        add_distribution_outputs(self.template, self.distribution)

        self.template.add_output(
            Output(
                "ContentBucketName",
                Value=Ref(self.content_bucket),
                Description="S3 bucket name for content",
                Export=Export(Sub("${AWS::StackName}-ContentBucketName")),
            )
        )

    def get_distribution_domain_name(self):
        """Get reference to CloudFront distribution domain name"""
        return GetAtt(self.distribution, "DomainName")

    def get_bucket_name(self):
        """Get reference to the content bucket name"""
        return Ref(self.content_bucket)
