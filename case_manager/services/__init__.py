# Services package

from .transaction import transaction
from .constraints import foreign_keys_suspended
from .folder_tree import (
    build_folder_tree,
    collect_descendant_ids,
    detect_circular_reference,
    create_folder,
    move_folder,
    delete_folder,
)
from .step_tree import order_for_creation, reconcile_steps, list_case_steps
from .case_restore import restore_cases

__all__ = [
    "transaction",
    "foreign_keys_suspended",
    "build_folder_tree",
    "collect_descendant_ids",
    "detect_circular_reference",
    "create_folder",
    "move_folder",
    "delete_folder",
    "order_for_creation",
    "reconcile_steps",
    "list_case_steps",
    "restore_cases",
]
