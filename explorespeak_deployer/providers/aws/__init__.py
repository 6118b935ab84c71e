"""
AWS Provider package.

Package Structure:
    aws/
    ├── __init__.py           # This file
    ├── provider.py           # AWSProvider class
    ├── clients.py            # boto3 client initialization
    ├── naming.py             # ARN / URL conventions
    ├── util_aws.py           # Console links, ClientError helpers
    └── layers/               # One module per deployment phase
        ├── tables.py
        ├── functions.py
        ├── gateway.py
        └── smoke.py
"""

from .provider import AWSProvider

__all__ = ["AWSProvider"]
