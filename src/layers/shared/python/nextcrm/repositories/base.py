"""Base repository class for DynamoDB operations."""

import os
from typing import Any, Generic, TypeVar

import boto3
import structlog
from boto3.dynamodb.types import TypeSerializer
from botocore.config import Config
from botocore.exceptions import ClientError

from nextcrm.models.base import BaseModel
from nextcrm.utils.exceptions import ConflictError, PersistenceError

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)

# Timeouts and retries belong to the client; repositories never retry themselves.
BOTO_CONFIG = Config(
    connect_timeout=float(os.environ.get("DYNAMODB_CONNECT_TIMEOUT", "2")),
    read_timeout=float(os.environ.get("DYNAMODB_READ_TIMEOUT", "5")),
    retries={"mode": "standard", "max_attempts": int(os.environ.get("DYNAMODB_MAX_ATTEMPTS", "3"))},
)

_serializer = TypeSerializer()


class BaseRepository(Generic[T]):
    """Base repository for DynamoDB single-table design.

    Provides common CRUD operations with optimistic locking support.
    Storage failures surface as PersistenceError; conditional check
    failures surface as ConflictError.
    """

    def __init__(
        self,
        model_class: type[T],
        table_name: str | None = None,
    ):
        """Initialize repository.

        Args:
            model_class: The Pydantic model class for this repository.
            table_name: DynamoDB table name. Defaults to TABLE_NAME env var.
        """
        self.model_class = model_class
        self.table_name = table_name or os.environ.get("TABLE_NAME", "nextcrm-dev")
        self._dynamodb = None
        self._table = None

    @property
    def dynamodb(self):
        """Get DynamoDB resource (lazy initialization)."""
        if self._dynamodb is None:
            self._dynamodb = boto3.resource("dynamodb", config=BOTO_CONFIG)
        return self._dynamodb

    @property
    def client(self):
        """Low-level client sharing the resource's configuration."""
        return self.dynamodb.meta.client

    @property
    def table(self):
        """Get DynamoDB table (lazy initialization)."""
        if self._table is None:
            self._table = self.dynamodb.Table(self.table_name)
        return self._table

    def _build_key(self, pk: str, sk: str) -> dict[str, str]:
        """Build key dictionary for DynamoDB operations."""
        return {"PK": pk, "SK": sk}

    def _storage_failure(self, operation: str, e: ClientError, **context: Any) -> PersistenceError:
        logger.error(
            "DynamoDB operation failed",
            operation=operation,
            error_code=e.response.get("Error", {}).get("Code"),
            error=str(e),
            model=self.model_class.__name__,
            **context,
        )
        return PersistenceError(operation)

    def build_item(self, item: T) -> dict[str, Any]:
        """Build the full DynamoDB item for a model, including index keys."""
        db_item = item.to_dynamodb()
        db_item.update(item.get_keys())
        gsi_keys = item.get_gsi1_keys()
        if gsi_keys:
            db_item.update(gsi_keys)
        return db_item

    def get(self, pk: str, sk: str) -> T | None:
        """Get an item by its primary key.

        Args:
            pk: Partition key value.
            sk: Sort key value.

        Returns:
            Model instance or None if not found.
        """
        try:
            response = self.table.get_item(Key=self._build_key(pk, sk))
        except ClientError as e:
            raise self._storage_failure("get_item", e, pk=pk, sk=sk) from e

        item = response.get("Item")
        if not item:
            return None
        return self.model_class.from_dynamodb(item)

    def put(self, item: T, condition_expression: str | None = None) -> T:
        """Put an item into DynamoDB.

        Args:
            item: Model instance to save.
            condition_expression: Optional condition expression.

        Returns:
            The saved model instance.

        Raises:
            ConflictError: If the condition fails.
        """
        item.update_timestamp()
        db_item = self.build_item(item)

        kwargs: dict[str, Any] = {"Item": db_item}
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression

        try:
            self.table.put_item(**kwargs)
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise ConflictError("Item already exists or version mismatch") from e
            raise self._storage_failure("put_item", e, pk=db_item["PK"]) from e

        logger.debug("Item saved", pk=db_item["PK"], sk=db_item["SK"], model=self.model_class.__name__)
        return item

    def create(self, item: T) -> T:
        """Create a new item (fails if exists).

        Raises:
            ConflictError: If item already exists.
        """
        return self.put(item, condition_expression="attribute_not_exists(PK)")

    def update(self, item: T, check_version: bool = True) -> T:
        """Update an existing item with optimistic locking.

        Args:
            item: Model instance to update.
            check_version: Whether to check version for optimistic locking.

        Returns:
            The updated model instance.

        Raises:
            ConflictError: If version mismatch (concurrent modification).
        """
        old_version = item.version
        item.increment_version()
        item.update_timestamp()
        db_item = self.build_item(item)

        kwargs: dict[str, Any] = {"Item": db_item}
        if check_version:
            kwargs["ConditionExpression"] = "version = :old_version"
            kwargs["ExpressionAttributeValues"] = {":old_version": old_version}

        try:
            self.table.put_item(**kwargs)
        except ClientError as e:
            item.version = old_version
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise ConflictError("Item was modified by another process", conflict_type="version") from e
            raise self._storage_failure("update", e, pk=db_item["PK"]) from e

        logger.debug("Item updated", pk=db_item["PK"], sk=db_item["SK"], version=item.version)
        return item

    def query(
        self,
        pk: str,
        sk_begins_with: str | None = None,
        index_name: str | None = None,
        limit: int | None = None,
        scan_forward: bool = True,
        filter_expression: str | None = None,
        expression_names: dict | None = None,
        expression_values: dict | None = None,
        last_key: dict | None = None,
    ) -> tuple[list[T], dict | None]:
        """Query items by partition key.

        Args:
            pk: Partition key value.
            sk_begins_with: Sort key prefix for begins_with condition.
            index_name: Optional GSI name; its keys are {index_name}PK/{index_name}SK.
            limit: Maximum items to return.
            scan_forward: Sort direction (True = ascending).
            filter_expression: Optional filter expression.
            expression_names: Expression attribute names.
            expression_values: Expression attribute values.
            last_key: Last evaluated key for pagination.

        Returns:
            Tuple of (items, last_evaluated_key).
        """
        pk_attr, sk_attr = (f"{index_name}PK", f"{index_name}SK") if index_name else ("PK", "SK")

        key_condition = f"{pk_attr} = :pk"
        expr_values: dict[str, Any] = {":pk": pk}
        if sk_begins_with:
            key_condition += f" AND begins_with({sk_attr}, :sk_prefix)"
            expr_values[":sk_prefix"] = sk_begins_with
        if expression_values:
            expr_values.update(expression_values)

        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ExpressionAttributeValues": expr_values,
            "ScanIndexForward": scan_forward,
        }
        if index_name:
            kwargs["IndexName"] = index_name
        if limit:
            kwargs["Limit"] = limit
        if filter_expression:
            kwargs["FilterExpression"] = filter_expression
        if expression_names:
            kwargs["ExpressionAttributeNames"] = expression_names
        if last_key:
            kwargs["ExclusiveStartKey"] = last_key

        try:
            response = self.table.query(**kwargs)
        except ClientError as e:
            raise self._storage_failure("query", e, pk=pk, index_name=index_name) from e

        items = [self.model_class.from_dynamodb(item) for item in response.get("Items", [])]
        return items, response.get("LastEvaluatedKey")

    def transact_write(self, operations: list[dict[str, Any]]) -> None:
        """Run a TransactWriteItems call.

        Args:
            operations: Entries like ``{"Put": {"Item": {...}, "ConditionExpression": ...}}``
                or ``{"Delete": {"Key": {...}}}`` holding plain Python values;
                the table name is filled in and values are serialized here.

        Raises:
            TransactionCancelled: With the per-operation cancellation codes.
            PersistenceError: On any other storage failure.
        """
        transact_items = []
        for operation in operations:
            ((action, params),) = operation.items()
            request = dict(params)
            request["TableName"] = self.table_name
            for field in ("Item", "Key"):
                if field in request:
                    request[field] = {k: _serializer.serialize(v) for k, v in request[field].items()}
            if "ExpressionAttributeValues" in request:
                request["ExpressionAttributeValues"] = {
                    k: _serializer.serialize(v) for k, v in request["ExpressionAttributeValues"].items()
                }
            transact_items.append({action: request})

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            if e.response["Error"]["Code"] == "TransactionCanceledException":
                reasons = [reason.get("Code") for reason in e.response.get("CancellationReasons", [])]
                raise TransactionCancelled(reasons) from e
            raise self._storage_failure("transact_write_items", e) from e


class TransactionCancelled(Exception):
    """A transaction was cancelled; ``reasons`` lists one code per operation."""

    def __init__(self, reasons: list[str | None]):
        super().__init__(f"Transaction cancelled: {reasons}")
        self.reasons = reasons

    def failed_condition(self, index: int) -> bool:
        """Whether the operation at ``index`` failed its condition check.

        When the store reports no reasons, any operation may have failed.
        """
        if not self.reasons:
            return True
        return index < len(self.reasons) and self.reasons[index] == "ConditionalCheckFailed"
