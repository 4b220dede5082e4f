"""
Compute constructs for Lambda functions, including Lambda@Edge.
"""

import logging
from typing import Any, Dict, List, Optional

from troposphere import GetAtt, Ref, Sub, Template, awslambda, iam

from ..compliance import Suppression, set_cfn_nag_suppressions
from ..utils import override_props

logger = logging.getLogger(__name__)

EDGE_FUNCTION_TITLE = "SetHttpSecurityHeaders"
EDGE_FUNCTION_RUNTIME = "nodejs20.x"
EDGE_FUNCTION_HANDLER = "index.handler"

LAMBDA_SERVICE_PRINCIPAL = "lambda.amazonaws.com"
EDGE_LAMBDA_SERVICE_PRINCIPAL = "edgelambda.amazonaws.com"

# Injects the security headers into every origin response before it is
# returned to the client.
SECURITY_HEADERS_FUNCTION_CODE = """exports.handler = (event, context, callback) => {
  const response = event.Records[0].cf.response;
  const headers = response.headers;
  headers['x-xss-protection'] = [
    { key: 'X-XSS-Protection', value: '1; mode=block' }
  ];
  headers['x-frame-options'] = [
    { key: 'X-Frame-Options', value: 'DENY' }
  ];
  headers['x-content-type-options'] = [
    { key: 'X-Content-Type-Options', value: 'nosniff' }
  ];
  headers['strict-transport-security'] = [
    { key: 'Strict-Transport-Security', value: 'max-age=63072000; includeSubdomains; preload' }
  ];
  headers['referrer-policy'] = [
    { key: 'Referrer-Policy', value: 'same-origin' }
  ];
  headers['content-security-policy'] = [
    { key: 'Content-Security-Policy', value: "default-src 'none'; base-uri 'self'; img-src 'self'; script-src 'self'; style-src 'self' https:; object-src 'none'; frame-ancestors 'none'; font-src 'self' https:; form-action 'self'; manifest-src 'self'; connect-src 'self'" }
  ];
  callback(null, response);
};
"""


def default_lambda_function_props(role: iam.Role) -> Dict[str, Any]:
    """Get default Lambda function properties for the given execution role."""
    return {
        "Role": GetAtt(role, "Arn"),
    }


def _create_lambda_role(
    template: Template, title: str, service_principals: List[str]
) -> iam.Role:
    """Create the execution role, limited to writing CloudWatch Logs."""
    return template.add_resource(
        iam.Role(
            title,
            AssumeRolePolicyDocument={
                "Version": "2012-10-17",
                "Statement": [
                    {
                        "Effect": "Allow",
                        "Principal": {"Service": service_principals},
                        "Action": ["sts:AssumeRole"],
                    }
                ],
            },
            Policies=[
                iam.Policy(
                    PolicyName="LambdaFunctionServiceRolePolicy",
                    PolicyDocument={
                        "Version": "2012-10-17",
                        "Statement": [
                            {
                                "Effect": "Allow",
                                "Action": [
                                    "logs:CreateLogGroup",
                                    "logs:CreateLogStream",
                                    "logs:PutLogEvents",
                                ],
                                "Resource": Sub(
                                    "arn:${AWS::Partition}:logs:${AWS::Region}:"
                                    "${AWS::AccountId}:log-group:/aws/lambda/*"
                                ),
                            }
                        ],
                    },
                )
            ],
        )
    )


def deploy_lambda_function(
    template: Template,
    lambda_function_props: Dict[str, Any],
    function_id: str = "LambdaFunction",
    service_principals: Optional[List[str]] = None,
) -> awslambda.Function:
    """
    Deploy a Lambda function with its own execution role.

    Args:
        template: CloudFormation template to add resources to
        lambda_function_props: Function properties (Code, Runtime, Handler, ...)
            replacing the defaults key by key
        function_id: Logical ID of the function
        service_principals: Services allowed to assume the execution role

    Returns:
        The function resource
    """
    role = _create_lambda_role(
        template,
        f"{function_id}ServiceRole",
        service_principals or [LAMBDA_SERVICE_PRINCIPAL],
    )

    props = override_props(default_lambda_function_props(role), lambda_function_props)
    function = template.add_resource(awslambda.Function(function_id, **props))

    if str(props.get("Runtime", "")).startswith("nodejs"):
        variables = {}
        if "Environment" in function.properties:
            variables = dict(function.Environment.properties.get("Variables", {}))
        variables["AWS_NODEJS_CONNECTION_REUSE_ENABLED"] = "1"
        function.Environment = awslambda.Environment(Variables=variables)

    set_cfn_nag_suppressions(
        function,
        [
            Suppression(
                "W58",
                "Lambda functions has the required permission to write CloudWatch Logs. "
                "It uses custom policy instead of "
                "arn:aws:iam::aws:policy/service-role/AWSLambdaBasicExecutionRole "
                "with tighter permissions.",
            )
        ],
    )

    logger.info(f"Added Lambda function {function_id}")
    return function


def strip_environment(function: awslambda.Function) -> awslambda.Function:
    """Remove the Environment property from a function, if any."""
    function.properties.pop("Environment", None)
    return function


def create_security_headers_function(template: Template) -> awslambda.Function:
    """
    Deploy the Lambda@Edge function that sets HTTP security headers.

    Lambda@Edge rejects functions with environment variables, so the
    Environment property is always removed.
    """
    function = deploy_lambda_function(
        template,
        {
            "Code": awslambda.Code(ZipFile=SECURITY_HEADERS_FUNCTION_CODE),
            "Runtime": EDGE_FUNCTION_RUNTIME,
            "Handler": EDGE_FUNCTION_HANDLER,
        },
        EDGE_FUNCTION_TITLE,
        service_principals=[LAMBDA_SERVICE_PRINCIPAL, EDGE_LAMBDA_SERVICE_PRINCIPAL],
    )
    return strip_environment(function)


def create_security_headers_version(template: Template) -> awslambda.Version:
    """Deploy the security headers function and publish an immutable version."""
    function = create_security_headers_function(template)
    version = template.add_resource(
        awslambda.Version(f"{EDGE_FUNCTION_TITLE}Version", FunctionName=Ref(function))
    )

    logger.info(f"Published Lambda@Edge version {version.title}")
    return version
