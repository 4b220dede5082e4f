"""
Comprehensive tests for storage constructs module.
Tests S3 bucket defaults, the CloudFront logging bucket and bucket policies.
"""

from troposphere import Template, s3

from cloudfront_patterns.compliance import cfn_nag_suppressions
from cloudfront_patterns.constructs.storage import (
    add_to_resource_policy,
    bucket_domain_name,
    create_cloudfront_logging_bucket,
    default_bucket_props,
    deploy_bucket,
)


class TestDefaultBucketProps:
    """Test default_bucket_props."""

    def test_hardened_defaults(self) -> None:
        """Test encryption, versioning and public access defaults."""
        props = default_bucket_props()

        encryption = props["BucketEncryption"].ServerSideEncryptionConfiguration[0]
        assert encryption.ServerSideEncryptionByDefault.SSEAlgorithm == "AES256"
        assert props["VersioningConfiguration"].Status == "Enabled"
        block = props["PublicAccessBlockConfiguration"]
        assert block.BlockPublicAcls is True
        assert block.BlockPublicPolicy is True
        assert block.IgnorePublicAcls is True
        assert block.RestrictPublicBuckets is True
        assert props["DeletionPolicy"] == "Retain"
        assert "LoggingConfiguration" not in props

    def test_server_access_logging(self) -> None:
        """Test a logging bucket enables server access logs."""
        logging_bucket = s3.Bucket("AccessLogs")

        props = default_bucket_props(logging_bucket)

        assert props["LoggingConfiguration"].to_dict() == {
            "DestinationBucketName": {"Ref": "AccessLogs"}
        }


class TestDeployBucket:
    """Test deploy_bucket."""

    def setup_method(self):
        """Set up test fixtures."""
        self.template = Template()

    def test_deploys_with_defaults(self) -> None:
        """Test the bucket carries the default properties."""
        deploy_bucket(self.template, "ContentBucket")

        resource = self.template.to_dict()["Resources"]["ContentBucket"]
        assert resource["Type"] == "AWS::S3::Bucket"
        assert resource["DeletionPolicy"] == "Retain"
        assert resource["UpdateReplacePolicy"] == "Retain"
        assert resource["Properties"]["VersioningConfiguration"] == {"Status": "Enabled"}
        rule = resource["Properties"]["LifecycleConfiguration"]["Rules"][0]
        assert rule["NoncurrentVersionTransitions"] == [
            {"StorageClass": "GLACIER", "TransitionInDays": 90}
        ]

    def test_overrides_replace_defaults(self) -> None:
        """Test caller props replace whole default properties."""
        deploy_bucket(
            self.template,
            "ContentBucket",
            {
                "BucketName": "my-content",
                "VersioningConfiguration": s3.VersioningConfiguration(Status="Suspended"),
            },
        )

        properties = self.template.to_dict()["Resources"]["ContentBucket"]["Properties"]
        assert properties["BucketName"] == "my-content"
        assert properties["VersioningConfiguration"] == {"Status": "Suspended"}
        assert "BucketEncryption" in properties


class TestCloudFrontLoggingBucket:
    """Test create_cloudfront_logging_bucket."""

    def setup_method(self):
        """Set up test fixtures."""
        self.template = Template()

    def test_log_delivery_write(self) -> None:
        """Test the bucket allows CloudFront log delivery."""
        create_cloudfront_logging_bucket(self.template)

        properties = self.template.to_dict()["Resources"]["CloudfrontLoggingBucket"][
            "Properties"
        ]
        assert properties["AccessControl"] == "LogDeliveryWrite"
        assert properties["OwnershipControls"] == {
            "Rules": [{"ObjectOwnership": "BucketOwnerPreferred"}]
        }
        assert "BucketEncryption" in properties

    def test_suppressions(self) -> None:
        """Test both logging bucket rules are suppressed with a reason."""
        bucket = create_cloudfront_logging_bucket(self.template)

        suppressions = cfn_nag_suppressions(bucket)
        assert [s["id"] for s in suppressions] == ["W35", "W51"]
        assert all("access logging bucket" in s["reason"] for s in suppressions)


class TestBucketPolicy:
    """Test add_to_resource_policy."""

    def setup_method(self):
        """Set up test fixtures."""
        self.template = Template()
        self.bucket = deploy_bucket(self.template, "ContentBucket")
        self.statement = {
            "Effect": "Allow",
            "Principal": "*",
            "Action": "s3:GetObject",
            "Resource": "*",
        }

    def test_creates_policy_on_first_use(self) -> None:
        """Test the policy is created for the bucket."""
        policy = add_to_resource_policy(self.template, self.bucket, self.statement)

        assert policy.title == "ContentBucketPolicy"
        resource = self.template.to_dict()["Resources"]["ContentBucketPolicy"]
        assert resource["Properties"]["Bucket"] == {"Ref": "ContentBucket"}
        assert resource["Properties"]["PolicyDocument"]["Statement"] == [self.statement]

    def test_appends_to_existing_policy(self) -> None:
        """Test later statements are appended to the same policy."""
        first = add_to_resource_policy(self.template, self.bucket, self.statement)
        second = add_to_resource_policy(
            self.template, self.bucket, dict(self.statement, Action="s3:ListBucket")
        )

        assert first is second
        assert len(second.PolicyDocument["Statement"]) == 2


class TestBucketDomainName:
    """Test bucket_domain_name."""

    def test_bucket_resource(self) -> None:
        """Test a bucket resource resolves to its regional domain name."""
        domain = bucket_domain_name(s3.Bucket("Logs"))
        assert domain.to_dict() == {"Fn::GetAtt": ["Logs", "RegionalDomainName"]}

    def test_domain_name_passthrough(self) -> None:
        """Test a plain domain name is passed through."""
        assert bucket_domain_name("logs.s3.amazonaws.com") == "logs.s3.amazonaws.com"
