"""Domain exceptions.

All domain-level errors raised by the taxonomy, fitment and projection
components. Validation and integrity errors are raised before any write
reaches the store; external errors are raised after the local commit.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    error_code = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationError(DomainError):
    """Raised when input is malformed or a required field is missing."""

    error_code = "VALIDATION_ERROR"


class InvalidParentError(ValidationError):
    """Raised when a node's parent violates the hierarchy rules."""

    error_code = "INVALID_PARENT"

    def __init__(self, node_type: str, rule: str, parent_id: str | None = None) -> None:
        """Initialize invalid parent error.

        Args:
            node_type: Type of the node being written (e.g. "MODEL", "category").
            rule: The violated rule, as shown to the caller.
            parent_id: The rejected parent ID.
        """
        super().__init__(
            rule,
            details={"node_type": node_type, "parent_id": parent_id},
        )


class CycleError(ValidationError):
    """Raised when reparenting would make a node its own ancestor."""

    error_code = "CYCLE_DETECTED"

    def __init__(self, node_id: str, new_parent_id: str) -> None:
        """Initialize cycle error.

        Args:
            node_id: Node being moved.
            new_parent_id: Requested parent.
        """
        super().__init__(
            f"Cannot move {node_id} under {new_parent_id}: a node cannot become its own ancestor",
            details={"node_id": node_id, "new_parent_id": new_parent_id},
        )


class DuplicateError(DomainError):
    """Raised when a uniqueness constraint would be violated."""

    error_code = "DUPLICATE"


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str) -> None:
        """Initialize not found error.

        Args:
            entity_type: Type of entity (e.g. "Category", "FitTerm").
            entity_id: ID that was looked up.
        """
        super().__init__(
            f"{entity_type} not found: {entity_id}",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


# ============================================================================
# Integrity Errors
# ============================================================================


class HasChildrenError(DomainError):
    """Raised when deleting a node that still has children."""

    error_code = "HAS_CHILDREN"

    def __init__(self, entity_type: str, entity_id: str, child_count: int) -> None:
        """Initialize has children error.

        Args:
            entity_type: Type of entity.
            entity_id: ID of the node.
            child_count: Number of children found.
        """
        super().__init__(
            f"Cannot delete {entity_type} {entity_id}: it still has {child_count} "
            "child(ren). Remove children first.",
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "child_count": child_count,
            },
        )


class InUseError(DomainError):
    """Raised when deleting a category that products are still linked to."""

    error_code = "IN_USE"

    def __init__(self, category_id: str, link_count: int) -> None:
        super().__init__(
            f"Cannot delete category {category_id}: {link_count} product link(s) reference it",
            details={"category_id": category_id, "link_count": link_count},
        )


class CorruptHierarchyError(DomainError):
    """Raised when a parent walk revisits a node or exceeds the depth bound."""

    error_code = "CORRUPT_HIERARCHY"

    def __init__(self, entity_type: str, start_id: str, reason: str) -> None:
        """Initialize corrupt hierarchy error.

        Args:
            entity_type: Hierarchy being walked ("Category" or "FitTerm").
            start_id: Node the walk started from.
            reason: What went wrong.
        """
        super().__init__(
            f"Corrupt {entity_type} hierarchy starting at {start_id}: {reason}",
            details={"entity_type": entity_type, "start_id": start_id, "reason": reason},
        )


# ============================================================================
# External Errors
# ============================================================================


class ExternalWriteError(DomainError):
    """Raised when pushing a projection to Shopify fails.

    The local mutation that triggered the push stays committed.
    """

    error_code = "EXTERNAL_WRITE_FAILED"

    def __init__(self, product_gid: str, reason: str) -> None:
        """Initialize external write error.

        Args:
            product_gid: Product whose projection could not be written.
            reason: Error reported by the external system.
        """
        super().__init__(
            f"Failed to write projection for {product_gid}: {reason}",
            details={"product_gid": product_gid, "reason": reason},
        )
        self.product_gid = product_gid
        self.reason = reason
