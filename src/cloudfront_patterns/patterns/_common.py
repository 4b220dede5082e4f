"""Helpers shared by the distribution patterns."""

from typing import Any, Dict

from troposphere import Export, GetAtt, Output, Ref, Sub, Template, cloudfront

from ..constructs.distribution import DistributionProps, LoggingConfig

# Config keys copied one to one into distribution props
PASSTHROUGH_KEYS = (
    "price_class",
    "default_root_object",
    "http_version",
    "enable_ip_v6",
    "comment",
    "web_acl_id",
    "aliases",
)


def distribution_overrides(cloudfront_config: Dict[str, Any]) -> DistributionProps:
    """Translate the cloudfront config section into distribution prop overrides."""
    overrides = DistributionProps(
        **{key: cloudfront_config[key] for key in PASSTHROUGH_KEYS if key in cloudfront_config}
    )

    logging_config = cloudfront_config.get("logging")
    if logging_config is not None:
        overrides.logging_config = LoggingConfig(
            bucket=logging_config.get("bucket"),
            prefix=logging_config.get("prefix"),
            include_cookies=logging_config.get("include_cookies", False),
        )

    return overrides


def add_distribution_outputs(
    template: Template, distribution: cloudfront.Distribution
) -> None:
    """Create exported outputs for a distribution."""
    outputs = {
        "CloudFrontDistributionId": {
            "value": Ref(distribution),
            "description": "CloudFront distribution ID",
        },
        "CloudFrontDistributionDomainName": {
            "value": GetAtt(distribution, "DomainName"),
            "description": "CloudFront distribution domain name",
        },
        "DistributionURL": {
            "value": Sub("https://${Domain}", Domain=GetAtt(distribution, "DomainName")),
            "description": "CloudFront distribution URL",
        },
    }

    for name, output_config in outputs.items():
        template.add_output(
            Output(
                name,
                Value=output_config["value"],
                Description=output_config["description"],
                Export=Export(Sub(f"${{AWS::StackName}}-{name}")),
            )
        )
