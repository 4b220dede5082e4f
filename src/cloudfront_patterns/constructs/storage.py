"""
Storage constructs for S3 buckets and bucket policies.
"""

import logging
from typing import Any, Dict, Optional

from troposphere import GetAtt, Join, Ref, Template, s3

from ..compliance import Suppression, set_cfn_nag_suppressions
from ..utils import override_props

logger = logging.getLogger(__name__)

LOGGING_BUCKET_TITLE = "CloudfrontLoggingBucket"
LOGGING_BUCKET_REASON = (
    "This S3 bucket is used as the access logging bucket for CloudFront Distribution"
)


def default_bucket_props(logging_bucket: Optional[s3.Bucket] = None) -> Dict[str, Any]:
    """
    Get hardened default properties for an S3 bucket.

    Args:
        logging_bucket: Optional bucket to receive server access logs

    Returns:
        Bucket keyword arguments, including resource attributes
    """
    props: Dict[str, Any] = {
        "BucketEncryption": s3.BucketEncryption(
            ServerSideEncryptionConfiguration=[
                s3.ServerSideEncryptionRule(
                    ServerSideEncryptionByDefault=s3.ServerSideEncryptionByDefault(
                        SSEAlgorithm="AES256"
                    )
                )
            ]
        ),
        "VersioningConfiguration": s3.VersioningConfiguration(Status="Enabled"),
        "PublicAccessBlockConfiguration": s3.PublicAccessBlockConfiguration(
            BlockPublicAcls=True,
            BlockPublicPolicy=True,
            IgnorePublicAcls=True,
            RestrictPublicBuckets=True,
        ),
        "LifecycleConfiguration": s3.LifecycleConfiguration(
            Rules=[
                s3.LifecycleRule(
                    Id="TransitionNoncurrentVersions",
                    Status="Enabled",
                    NoncurrentVersionTransitions=[
                        s3.NoncurrentVersionTransition(
                            StorageClass="GLACIER", TransitionInDays=90
                        )
                    ],
                )
            ]
        ),
        "DeletionPolicy": "Retain",
        "UpdateReplacePolicy": "Retain",
    }

    if logging_bucket is not None:
        props["LoggingConfiguration"] = s3.LoggingConfiguration(
            DestinationBucketName=Ref(logging_bucket)
        )

    return props


def deploy_bucket(
    template: Template,
    title: str,
    bucket_props: Optional[Dict[str, Any]] = None,
    logging_bucket: Optional[s3.Bucket] = None,
) -> s3.Bucket:
    """
    Create an S3 bucket from default properties and caller overrides.

    Args:
        template: CloudFormation template to add the bucket to
        title: Logical ID of the bucket
        bucket_props: Bucket properties replacing the defaults key by key
        logging_bucket: Optional bucket to receive server access logs

    Returns:
        The bucket resource
    """
    props = override_props(default_bucket_props(logging_bucket), bucket_props)
    bucket = template.add_resource(s3.Bucket(title, **props))

    logger.info(f"Added S3 bucket {title}")
    return bucket


def create_cloudfront_logging_bucket(template: Template) -> s3.Bucket:
    """Create the bucket CloudFront writes access logs to."""
    logging_bucket = deploy_bucket(template, LOGGING_BUCKET_TITLE)

    # CloudFront log delivery writes through the bucket ACL
    logging_bucket.AccessControl = "LogDeliveryWrite"
    # ACLs are disabled on new buckets unless object ownership allows them
    logging_bucket.OwnershipControls = s3.OwnershipControls(
        Rules=[s3.OwnershipControlsRule(ObjectOwnership="BucketOwnerPreferred")]
    )

    set_cfn_nag_suppressions(
        logging_bucket,
        [
            Suppression("W35", LOGGING_BUCKET_REASON),
            Suppression("W51", LOGGING_BUCKET_REASON),
        ],
    )
    return logging_bucket


def bucket_domain_name(bucket: Any) -> Any:
    """Get the regional domain name of a bucket resource, or pass a name through."""
    if isinstance(bucket, s3.Bucket):
        return GetAtt(bucket, "RegionalDomainName")
    return bucket


def bucket_objects_arn(bucket: s3.Bucket, key_pattern: str = "*") -> Join:
    """Get the ARN matching objects in a bucket."""
    return Join("", [GetAtt(bucket, "Arn"), f"/{key_pattern}"])


def add_to_resource_policy(
    template: Template, bucket: s3.Bucket, statement: Dict[str, Any]
) -> s3.BucketPolicy:
    """
    Append a statement to a bucket's resource policy.

    The policy is titled after the bucket and created on first use.

    Args:
        template: CloudFormation template holding the policy
        bucket: Bucket the policy applies to
        statement: IAM policy statement

    Returns:
        The bucket policy resource
    """
    policy_title = f"{bucket.title}Policy"
    policy = template.resources.get(policy_title)

    if policy is None:
        policy = template.add_resource(
            s3.BucketPolicy(
                policy_title,
                Bucket=Ref(bucket),
                PolicyDocument={"Version": "2012-10-17", "Statement": []},
            )
        )
        logger.info(f"Added bucket policy {policy_title}")

    policy.PolicyDocument["Statement"].append(statement)
    return policy
