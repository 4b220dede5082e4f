"""
Distribution constructs for CloudFront in front of S3 or API Gateway.

Builds CloudFront web distributions with secure defaults: an access logging
bucket, a Lambda@Edge function setting HTTP security headers and, for S3
origins, an origin access identity with read access to the bucket.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from troposphere import (
    GetAtt,
    Join,
    Ref,
    Select,
    Split,
    Sub,
    Template,
    apigateway,
    awslambda,
    cloudfront,
    s3,
)

from ..compliance import Suppression, set_cfn_nag_suppressions
from ..utils import override_props
from .compute import create_security_headers_version
from .storage import (
    add_to_resource_policy,
    bucket_domain_name,
    bucket_objects_arn,
    create_cloudfront_logging_bucket,
)

logger = logging.getLogger(__name__)

DISTRIBUTION_TITLE = "CloudFrontDistribution"
ORIGIN_ACCESS_IDENTITY_TITLE = "CloudFrontOriginAccessIdentity"

DEFAULT_PRICE_CLASS = "PriceClass_100"
DEFAULT_ROOT_OBJECT = "index.html"
DEFAULT_HTTP_VERSION = "http2"
DEFAULT_VIEWER_PROTOCOL_POLICY = "redirect-to-https"


@dataclass
class LoggingConfig:
    """Access log destination for a distribution."""

    bucket: Optional[Union[s3.Bucket, Any]] = None
    prefix: Optional[str] = None
    include_cookies: bool = False


@dataclass
class LambdaFunctionAssociation:
    """Lambda@Edge version attached to a behavior."""

    lambda_function: awslambda.Version
    event_type: str = "origin-response"
    include_body: bool = False


@dataclass
class Behavior:
    """Cache behavior of a source configuration."""

    is_default_behavior: bool = False
    path_pattern: Optional[str] = None
    allowed_methods: List[str] = field(default_factory=lambda: ["GET", "HEAD"])
    cached_methods: List[str] = field(default_factory=lambda: ["GET", "HEAD"])
    compress: bool = True
    forward_query_string: bool = False
    min_ttl: Optional[int] = None
    default_ttl: Optional[int] = None
    max_ttl: Optional[int] = None
    lambda_function_associations: List[LambdaFunctionAssociation] = field(
        default_factory=list
    )


@dataclass
class S3OriginSource:
    """S3 bucket origin read through an origin access identity."""

    s3_bucket_source: s3.Bucket
    origin_access_identity: cloudfront.CloudFrontOriginAccessIdentity


@dataclass
class CustomOriginSource:
    """HTTP origin such as an API Gateway endpoint."""

    domain_name: Any
    http_port: int = 80
    https_port: int = 443
    origin_protocol_policy: str = "https-only"
    allowed_origin_ssl_versions: List[str] = field(default_factory=lambda: ["TLSv1.2"])
    origin_read_timeout: int = 30
    origin_keepalive_timeout: int = 5


@dataclass
class SourceConfiguration:
    """An origin and the behaviors routed to it."""

    behaviors: List[Behavior]
    s3_origin_source: Optional[S3OriginSource] = None
    custom_origin_source: Optional[CustomOriginSource] = None
    origin_path: Optional[str] = None


@dataclass
class DistributionProps:
    """
    Properties of a CloudFront web distribution.

    Every field defaults to None, meaning "not set". Unset fields take
    the distribution defaults when the distribution is created, and are
    ignored when the props are used as overrides.
    """

    origin_configs: Optional[List[SourceConfiguration]] = None
    logging_config: Optional[LoggingConfig] = None
    price_class: Optional[str] = None
    default_root_object: Optional[str] = None
    http_version: Optional[str] = None
    enable_ip_v6: Optional[bool] = None
    enabled: Optional[bool] = None
    comment: Optional[str] = None
    web_acl_id: Optional[str] = None
    aliases: Optional[List[str]] = None
    viewer_protocol_policy: Optional[str] = None
    error_configurations: Optional[List[cloudfront.CustomErrorResponse]] = None


@dataclass(frozen=True)
class ProvidedLogDestination:
    """The caller named the bucket access logs go to."""

    bucket: Any


@dataclass(frozen=True)
class NeedsProvisioning:
    """A dedicated logging bucket has to be created."""


LogDestination = Union[ProvidedLogDestination, NeedsProvisioning]


@dataclass
class ApiEndpoint:
    """Invoke URL and stage of an API Gateway REST API."""

    url: Any
    stage_name: str

    @classmethod
    def for_rest_api(cls, rest_api: apigateway.RestApi, stage_name: str) -> "ApiEndpoint":
        """Build the endpoint of a REST API defined in the same template."""
        url = Sub(
            f"https://${{Api}}.execute-api.${{AWS::Region}}.${{AWS::URLSuffix}}/{stage_name}/",
            Api=Ref(rest_api),
        )
        return cls(url=url, stage_name=stage_name)

    @property
    def domain_name(self) -> Select:
        """Host part of the invoke URL."""
        without_protocol = Select(1, Split("://", self.url))
        return Select(0, Split("/", without_protocol))


def _fixed_defaults() -> Dict[str, Any]:
    return {
        "price_class": DEFAULT_PRICE_CLASS,
        "default_root_object": DEFAULT_ROOT_OBJECT,
        "http_version": DEFAULT_HTTP_VERSION,
        "enable_ip_v6": True,
        "enabled": True,
        "viewer_protocol_policy": DEFAULT_VIEWER_PROTOCOL_POLICY,
    }


def _default_behavior(
    http_security_headers: bool, edge_version: Optional[awslambda.Version]
) -> Behavior:
    behavior = Behavior(is_default_behavior=True)
    if http_security_headers and edge_version is not None:
        behavior.lambda_function_associations = [
            LambdaFunctionAssociation(lambda_function=edge_version)
        ]
    return behavior


def default_distribution_props_for_api_gateway(
    api_endpoint: ApiEndpoint,
    logging_bucket: Any,
    http_security_headers: bool,
    edge_version: Optional[awslambda.Version] = None,
) -> DistributionProps:
    """Get default distribution props for an API Gateway origin."""
    return DistributionProps(
        origin_configs=[
            SourceConfiguration(
                custom_origin_source=CustomOriginSource(
                    domain_name=api_endpoint.domain_name
                ),
                origin_path=f"/{api_endpoint.stage_name}",
                behaviors=[_default_behavior(http_security_headers, edge_version)],
            )
        ],
        logging_config=LoggingConfig(bucket=logging_bucket),
        **_fixed_defaults(),
    )


def default_distribution_props_for_s3(
    source_bucket: s3.Bucket,
    logging_bucket: Any,
    origin_access_identity: cloudfront.CloudFrontOriginAccessIdentity,
    http_security_headers: bool,
    edge_version: Optional[awslambda.Version] = None,
) -> DistributionProps:
    """Get default distribution props for an S3 origin."""
    return DistributionProps(
        origin_configs=[
            SourceConfiguration(
                s3_origin_source=S3OriginSource(
                    s3_bucket_source=source_bucket,
                    origin_access_identity=origin_access_identity,
                ),
                behaviors=[_default_behavior(http_security_headers, edge_version)],
            )
        ],
        logging_config=LoggingConfig(bucket=logging_bucket),
        **_fixed_defaults(),
    )


def log_destination_for(
    distribution_props: Optional[Union[DistributionProps, Dict[str, Any]]]
) -> LogDestination:
    """Decide whether the caller supplied an access log bucket."""
    if distribution_props is None:
        return NeedsProvisioning()

    if isinstance(distribution_props, dict):
        logging_config = distribution_props.get("logging_config")
    else:
        logging_config = distribution_props.logging_config

    if logging_config is not None and not isinstance(logging_config, LoggingConfig):
        raise TypeError(
            f"logging_config must be a LoggingConfig, got {type(logging_config).__name__}"
        )

    if logging_config is not None and logging_config.bucket is not None:
        return ProvidedLogDestination(logging_config.bucket)
    return NeedsProvisioning()


def resolve_logging_bucket(template: Template, destination: LogDestination) -> Any:
    """Get the logging bucket for a destination, provisioning one if needed."""
    if isinstance(destination, ProvidedLogDestination):
        logger.debug("Using caller supplied access log bucket")
        return destination.bucket

    logger.debug("No access log bucket supplied, provisioning one")
    return create_cloudfront_logging_bucket(template)


def _origin(index: int, source: SourceConfiguration) -> cloudfront.Origin:
    origin_props: Dict[str, Any] = {"Id": f"origin{index}"}

    if source.s3_origin_source is not None:
        origin_source = source.s3_origin_source
        origin_props["DomainName"] = bucket_domain_name(origin_source.s3_bucket_source)
        origin_props["S3OriginConfig"] = cloudfront.S3OriginConfig(
            OriginAccessIdentity=Join(
                "",
                [
                    "origin-access-identity/cloudfront/",
                    Ref(origin_source.origin_access_identity),
                ],
            )
        )
    elif source.custom_origin_source is not None:
        origin_source = source.custom_origin_source
        origin_props["DomainName"] = origin_source.domain_name
        origin_props["CustomOriginConfig"] = cloudfront.CustomOriginConfig(
            HTTPPort=origin_source.http_port,
            HTTPSPort=origin_source.https_port,
            OriginProtocolPolicy=origin_source.origin_protocol_policy,
            OriginSSLProtocols=origin_source.allowed_origin_ssl_versions,
            OriginReadTimeout=origin_source.origin_read_timeout,
            OriginKeepaliveTimeout=origin_source.origin_keepalive_timeout,
        )
    else:
        raise ValueError(
            "There must be one (and only one) of s3_origin_source or custom_origin_source"
        )

    if source.origin_path:
        origin_props["OriginPath"] = source.origin_path

    return cloudfront.Origin(**origin_props)


def _behavior_props(
    behavior: Behavior, origin_id: str, viewer_protocol_policy: str
) -> Dict[str, Any]:
    props: Dict[str, Any] = {
        "TargetOriginId": origin_id,
        "ViewerProtocolPolicy": viewer_protocol_policy,
        "AllowedMethods": behavior.allowed_methods,
        "CachedMethods": behavior.cached_methods,
        "Compress": behavior.compress,
        "ForwardedValues": cloudfront.ForwardedValues(
            QueryString=behavior.forward_query_string,
            Cookies=cloudfront.Cookies(Forward="none"),
        ),
    }

    for key, value in (
        ("MinTTL", behavior.min_ttl),
        ("DefaultTTL", behavior.default_ttl),
        ("MaxTTL", behavior.max_ttl),
    ):
        if value is not None:
            props[key] = value

    if behavior.lambda_function_associations:
        props["LambdaFunctionAssociations"] = [
            cloudfront.LambdaFunctionAssociation(
                EventType=association.event_type,
                LambdaFunctionARN=Ref(association.lambda_function),
                IncludeBody=association.include_body,
            )
            for association in behavior.lambda_function_associations
        ]

    return props


def _logging(logging_config: LoggingConfig) -> cloudfront.Logging:
    logging_props: Dict[str, Any] = {"IncludeCookies": logging_config.include_cookies}
    if logging_config.bucket is not None:
        logging_props["Bucket"] = bucket_domain_name(logging_config.bucket)
    if logging_config.prefix:
        logging_props["Prefix"] = logging_config.prefix
    return cloudfront.Logging(**logging_props)


def create_distribution(
    template: Template, props: DistributionProps, title: str = DISTRIBUTION_TITLE
) -> cloudfront.Distribution:
    """
    Create a CloudFront distribution from distribution props.

    Args:
        template: CloudFormation template to add the distribution to
        props: Final distribution props, after any overrides
        title: Logical ID of the distribution

    Returns:
        The distribution resource

    Raises:
        ValueError: If the origins do not define exactly one default behavior
    """
    props = override_props(DistributionProps(**_fixed_defaults()), props)

    origins = []
    default_cache_behavior = None
    cache_behaviors = []

    for index, source in enumerate(props.origin_configs or [], start=1):
        origin = _origin(index, source)
        origins.append(origin)

        for behavior in source.behaviors:
            behavior_props = _behavior_props(
                behavior, origin.Id, props.viewer_protocol_policy
            )
            if behavior.is_default_behavior:
                if default_cache_behavior is not None:
                    raise ValueError(
                        "There can only be one default behavior across all sources"
                    )
                default_cache_behavior = cloudfront.DefaultCacheBehavior(**behavior_props)
            else:
                if not behavior.path_pattern:
                    raise ValueError(
                        "path_pattern is required for all non-default behaviors"
                    )
                cache_behaviors.append(
                    cloudfront.CacheBehavior(
                        PathPattern=behavior.path_pattern, **behavior_props
                    )
                )

    if default_cache_behavior is None:
        raise ValueError("There must be a default behavior across all sources")

    config_props: Dict[str, Any] = {
        "Enabled": props.enabled,
        "Origins": origins,
        "DefaultCacheBehavior": default_cache_behavior,
        "DefaultRootObject": props.default_root_object,
        "HttpVersion": props.http_version,
        "IPV6Enabled": props.enable_ip_v6,
        "PriceClass": props.price_class,
        "ViewerCertificate": cloudfront.ViewerCertificate(
            CloudFrontDefaultCertificate=True
        ),
    }
    if cache_behaviors:
        config_props["CacheBehaviors"] = cache_behaviors
    if props.logging_config is not None:
        config_props["Logging"] = _logging(props.logging_config)
    if props.comment:
        config_props["Comment"] = props.comment
    if props.web_acl_id:
        config_props["WebACLId"] = props.web_acl_id
    if props.aliases:
        config_props["Aliases"] = props.aliases
    if props.error_configurations:
        config_props["CustomErrorResponses"] = props.error_configurations

    distribution = template.add_resource(
        cloudfront.Distribution(
            title, DistributionConfig=cloudfront.DistributionConfig(**config_props)
        )
    )

    logger.info(f"Added CloudFront distribution {title} with {len(origins)} origin(s)")
    return distribution


def update_security_policy(
    distribution: cloudfront.Distribution,
) -> cloudfront.Distribution:
    """Suppress the cfn_nag TLS rule that the default certificate cannot satisfy."""
    return set_cfn_nag_suppressions(
        distribution,
        [
            Suppression(
                "W70",
                "Since the distribution uses the CloudFront domain name, CloudFront "
                "automatically sets the security policy to TLSv1 regardless of the "
                "value of MinimumProtocolVersion",
            )
        ],
    )


def _provision_distribution(
    template: Template,
    distribution_props: Optional[Union[DistributionProps, Dict[str, Any]]],
    default_props: DistributionProps,
) -> cloudfront.Distribution:
    final_props = override_props(default_props, distribution_props)
    distribution = create_distribution(template, final_props)
    return update_security_policy(distribution)


def cloudfront_distribution_for_api_gateway(
    template: Template,
    api_endpoint: ApiEndpoint,
    distribution_props: Optional[Union[DistributionProps, Dict[str, Any]]] = None,
    http_security_headers: Optional[bool] = None,
) -> cloudfront.Distribution:
    """
    Create a CloudFront distribution in front of an API Gateway endpoint.

    Args:
        template: CloudFormation template to add resources to
        api_endpoint: API the distribution forwards to
        distribution_props: Caller props replacing the defaults field by field
        http_security_headers: Set security headers with Lambda@Edge. None
            enables them; any other falsy value disables them.

    Returns:
        The distribution resource
    """
    set_headers = True if http_security_headers is None else bool(http_security_headers)

    edge_version = None
    if set_headers:
        edge_version = create_security_headers_version(template)

    logging_bucket = resolve_logging_bucket(
        template, log_destination_for(distribution_props)
    )
    default_props = default_distribution_props_for_api_gateway(
        api_endpoint, logging_bucket, set_headers, edge_version
    )

    return _provision_distribution(template, distribution_props, default_props)


def cloudfront_distribution_for_s3(
    template: Template,
    source_bucket: s3.Bucket,
    distribution_props: Optional[Union[DistributionProps, Dict[str, Any]]] = None,
    http_security_headers: Optional[bool] = None,
) -> cloudfront.Distribution:
    """
    Create a CloudFront distribution in front of an S3 bucket.

    The bucket stays private; the distribution reads it through an origin
    access identity granted s3:GetObject by the bucket policy.

    Args:
        template: CloudFormation template to add resources to
        source_bucket: Bucket holding the content
        distribution_props: Caller props replacing the defaults field by field
        http_security_headers: Set security headers with Lambda@Edge. Only
            an explicit False disables them.

    Returns:
        The distribution resource
    """
    origin_access_identity = template.add_resource(
        cloudfront.CloudFrontOriginAccessIdentity(
            ORIGIN_ACCESS_IDENTITY_TITLE,
            CloudFrontOriginAccessIdentityConfig=cloudfront.CloudFrontOriginAccessIdentityConfig(
                Comment="Access S3 bucket content only through CloudFront"
            ),
        )
    )

    set_headers = http_security_headers is not False

    edge_version = None
    if set_headers:
        edge_version = create_security_headers_version(template)

    logging_bucket = resolve_logging_bucket(
        template, log_destination_for(distribution_props)
    )
    default_props = default_distribution_props_for_s3(
        source_bucket, logging_bucket, origin_access_identity, set_headers, edge_version
    )

    distribution = _provision_distribution(template, distribution_props, default_props)

    # The canonical user ID only exists once the identity is declared
    bucket_policy = add_to_resource_policy(
        template,
        source_bucket,
        {
            "Effect": "Allow",
            "Action": "s3:GetObject",
            "Resource": bucket_objects_arn(source_bucket),
            "Principal": {
                "CanonicalUser": GetAtt(origin_access_identity, "S3CanonicalUserId")
            },
        },
    )
    set_cfn_nag_suppressions(
        bucket_policy,
        [
            Suppression(
                "F16", "Public website bucket policy requires a wildcard principal"
            )
        ],
    )

    return distribution
