"""CloudFront in front of an API Gateway REST API."""

import logging
from typing import Any, Dict

from troposphere import GetAtt, Template, apigateway

from ..constructs.distribution import ApiEndpoint, cloudfront_distribution_for_api_gateway
from ._common import add_distribution_outputs, distribution_overrides

logger = logging.getLogger(__name__)


class CloudFrontToApiGatewayPattern:
    """
    Pattern for a REST API served through CloudFront.

    The API stage becomes the origin path of the distribution.
    """

    def __init__(
        self,
        template: Template,
        config: Dict[str, Any],
        environment: str,
        rest_api: apigateway.RestApi,
        stage_name: str,
    ):
        """
        Initialize the pattern.

        Args:
            template: CloudFormation template to add resources to
            config: Pattern configuration
            environment: Deployment environment
            rest_api: REST API resource in the same template
            stage_name: Deployed stage of the API
        """
        self.template = template
        self.config = config
        self.environment = environment
        self.resources: Dict[str, Any] = {}

        self.cloudfront_config = config.get("cloudfront", {})
        self.api_endpoint = ApiEndpoint.for_rest_api(rest_api, stage_name)

        self.distribution = cloudfront_distribution_for_api_gateway(
            self.template,
            self.api_endpoint,
            distribution_overrides(self.cloudfront_config),
            http_security_headers=self.cloudfront_config.get("http_security_headers"),
        )
        self.resources["distribution"] = self.distribution

        add_distribution_outputs(self.template, self.distribution)
        logger.info(f"Created CloudFront to API Gateway pattern for {environment}")

    def get_distribution_domain_name(self):
        """Get reference to CloudFront distribution domain name"""
        return GetAtt(self.distribution, "DomainName")
