"""JSON schema for pattern configuration files."""

from typing import Any, Dict

PRICE_CLASSES = ["PriceClass_100", "PriceClass_200", "PriceClass_All"]

PATTERN_CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "s3": {
            "type": "object",
            "properties": {
                "bucket_name": {"type": "string"},
                "versioning": {"type": "boolean"},
            },
            "additionalProperties": False,
        },
        "cloudfront": {
            "type": "object",
            "properties": {
                "http_security_headers": {"type": "boolean"},
                "price_class": {"enum": PRICE_CLASSES},
                "default_root_object": {"type": "string"},
                "http_version": {"enum": ["http1.1", "http2", "http2and3", "http3"]},
                "enable_ip_v6": {"type": "boolean"},
                "comment": {"type": "string", "maxLength": 128},
                "web_acl_id": {"type": "string"},
                "aliases": {"type": "array", "items": {"type": "string"}},
                "logging": {
                    "type": "object",
                    "properties": {
                        "bucket": {"type": "string"},
                        "prefix": {"type": "string"},
                        "include_cookies": {"type": "boolean"},
                    },
                    "additionalProperties": False,
                },
            },
            "additionalProperties": False,
        },
    },
}
