"""
Deployment phases for AWS.

Each module reconciles one resource family and returns a report:
    tables     -> TableReport
    functions  -> FunctionReport
    gateway    -> GatewayReport
    smoke      -> SmokeReport
"""
