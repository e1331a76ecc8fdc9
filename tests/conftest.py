"""Pytest configuration and fixtures."""

import json
import os

import pytest

# Set environment variables before imports
os.environ["TABLE_NAME"] = "nextcrm-test"
os.environ["STAGE"] = "test"
os.environ["SERVICE_NAME"] = "nextcrm"
os.environ["EVENT_BUS_NAME"] = "default"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"

WORKSPACE_ID = "test-workspace-456"
OTHER_WORKSPACE_ID = "test-workspace-789"


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def dynamodb_table(aws_credentials):
    """Create mocked DynamoDB table (EventBridge is mocked alongside it)."""
    import boto3
    from moto import mock_aws

    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")

        table = dynamodb.create_table(
            TableName="nextcrm-test",
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"},
                {"AttributeName": "GSI1PK", "AttributeType": "S"},
                {"AttributeName": "GSI1SK", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": "GSI1",
                    "KeySchema": [
                        {"AttributeName": "GSI1PK", "KeyType": "HASH"},
                        {"AttributeName": "GSI1SK", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                },
            ],
            BillingMode="PAY_PER_REQUEST",
        )

        table.wait_until_exists()

        yield table


@pytest.fixture
def sample_content_dict():
    """A small valid content tree in wire form."""
    return {
        "metadata": {"name": "Agent Card", "description": "Card for real estate agents"},
        "elements": [
            {
                "id": "section-1",
                "type": "Section",
                "props": {"layerName": "Hero"},
                "children": [
                    {
                        "id": "heading-1",
                        "type": "Heading",
                        "props": {"text": "Hi, I'm Jane", "level": "h1", "alignment": "center"},
                        "children": [],
                    },
                    {
                        "id": "text-1",
                        "type": "Text",
                        "props": {"content": "Helping families find a home."},
                        "children": [],
                    },
                    {
                        "id": "button-1",
                        "type": "Button",
                        "props": {"text": "Call me", "url": "https://example.com/call"},
                        "children": [],
                    },
                ],
            },
        ],
    }


@pytest.fixture
def sample_content(sample_content_dict):
    """The sample tree validated into BlockContent."""
    from nextcrm.models.block_content import validate_block_content

    return validate_block_content(sample_content_dict)


@pytest.fixture
def sample_template(sample_content):
    """Create a sample workspace template (not persisted)."""
    from nextcrm.models.block_content import StoredContent
    from nextcrm.models.template import Template, TemplateType

    return Template(
        name="Agent Card",
        description="Card for real estate agents",
        type=TemplateType.PROFILE_TEMPLATE,
        workspace_id=WORKSPACE_ID,
        created_by="test-user-123",
        content=StoredContent.from_content(sample_content),
    )


@pytest.fixture
def sample_owner():
    """Create a sample profile owner."""
    from nextcrm.models.profile import ProfileOwner

    return ProfileOwner(
        user_id="test-user-123",
        name="Jane Doe",
        image="https://cdn.example.com/jane.png",
        email="jane@example.com",
    )


@pytest.fixture
def api_gateway_event():
    """Create a sample API Gateway event."""
    def _create_event(
        method: str = "GET",
        path: str = "/",
        path_params: dict = None,
        query_params: dict = None,
        body: dict = None,
        user_id: str = "test-user-123",
        workspace_ids: list = None,
        is_admin: bool = False,
    ):
        workspace_ids = workspace_ids or [WORKSPACE_ID]

        return {
            "httpMethod": method,
            "path": path,
            "pathParameters": path_params or {},
            "queryStringParameters": query_params or {},
            "body": body if isinstance(body, str) else (json.dumps(body) if body else None),
            "headers": {
                "Authorization": "Bearer test-token",
                "Content-Type": "application/json",
            },
            "requestContext": {
                "authorizer": {
                    "userId": user_id,
                    "email": "test@example.com",
                    "workspaceIds": ",".join(workspace_ids),
                    "isAdmin": "true" if is_admin else "false",
                },
            },
        }

    return _create_event


@pytest.fixture
def public_event():
    """Create an API Gateway event for public (unauthenticated) endpoints."""
    def _create_event(
        method: str = "GET",
        path: str = "/",
        path_params: dict = None,
        body: dict | str = None,
        source_ip: str = "1.2.3.4",
    ):
        return {
            "httpMethod": method,
            "path": path,
            "pathParameters": path_params or {},
            "queryStringParameters": {},
            "body": body if isinstance(body, str) else (json.dumps(body) if body else None),
            "headers": {"Content-Type": "application/json", "User-Agent": "pytest-browser/1.0"},
            "requestContext": {
                "identity": {"sourceIp": source_ip},
            },
        }

    return _create_event


class LambdaContext:
    """Mock Lambda context."""

    def __init__(self):
        self.function_name = "test-function"
        self.memory_limit_in_mb = 128
        self.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789:function:test"
        self.aws_request_id = "test-request-id"

    def get_remaining_time_in_millis(self):
        return 30000


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context."""
    return LambdaContext()
