"""
Scenario Loader for the Banker's Admission Controller.

Loads and structurally validates JSON scenario files describing the
initial ledger and the requests to evaluate against it.
"""

import json
from typing import Dict, List, Any, Tuple

from models.ledger import Ledger, LedgerShapeError
from models.request import ResourceRequest


class ScenarioLoadError(Exception):
    """Exception raised when scenario file cannot be loaded or is invalid."""
    pass


def load_scenario(file_path: str) -> Tuple[Ledger, List[ResourceRequest]]:
    """
    Load scenario from JSON file.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Tuple of (Ledger, requests)
        - Ledger: Initial state with need derived (not yet validated)
        - requests: Requests in file order

    Raises:
        ScenarioLoadError: If file cannot be loaded or is structurally invalid
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ScenarioLoadError(f"Scenario file not found: {file_path}")
    except json.JSONDecodeError as e:
        raise ScenarioLoadError(f"Invalid JSON in scenario file: {e}")

    return parse_scenario(data)


def parse_scenario(data: Dict[str, Any]) -> Tuple[Ledger, List[ResourceRequest]]:
    """
    Build a ledger and request list from already-decoded scenario data.

    Args:
        data: Scenario dictionary

    Returns:
        Tuple of (Ledger, requests)

    Raises:
        ScenarioLoadError: If the scenario is structurally invalid
    """
    if not isinstance(data, dict):
        raise ScenarioLoadError("Scenario must be a JSON object")

    if 'clients' not in data:
        raise ScenarioLoadError("Scenario missing 'clients' field")
    if ('resources' in data) == ('available' in data):
        raise ScenarioLoadError("Scenario must define exactly one of 'resources' or 'available'")

    if 'resources' in data:
        totals = _load_resources(data['resources'])
        num_resources = len(totals)
    else:
        available = _int_vector(data['available'], "available")
        num_resources = len(available)

    maximum, allocation = _load_clients(data['clients'], num_resources)

    try:
        if 'resources' in data:
            ledger = Ledger.from_totals(totals, maximum, allocation)
        else:
            ledger = Ledger(available=available, maximum=maximum, allocation=allocation)
    except LedgerShapeError as e:
        raise ScenarioLoadError(f"Invalid ledger input: {e}")

    requests = _load_requests(data.get('requests', []), num_resources)

    return ledger, requests


def _load_resources(resource_data: List[Dict]) -> List[int]:
    """
    Load resource definitions from scenario data.

    Args:
        resource_data: List of resource dictionaries

    Returns:
        Total instances per resource type, ordered by type_id
    """
    if not isinstance(resource_data, list):
        raise ScenarioLoadError("'resources' must be a list")

    for index, res in enumerate(resource_data):
        if not isinstance(res, dict):
            raise ScenarioLoadError(f"Resource {index}: must be an object, got {res!r}")
        if 'type_id' not in res:
            raise ScenarioLoadError("Resource missing 'type_id' field")
        _int_value(res['type_id'], f"Resource {index} type_id")
        if 'total_instances' not in res:
            raise ScenarioLoadError(f"Resource {res['type_id']} missing 'total_instances'")

    ordered = sorted(resource_data, key=lambda r: r['type_id'])
    type_ids = [res['type_id'] for res in ordered]
    if type_ids != list(range(len(ordered))):
        raise ScenarioLoadError(f"Resource type_ids must be 0..{len(ordered) - 1}, got {type_ids}")

    return [_int_value(res['total_instances'], f"R{res['type_id']} total_instances") for res in ordered]


def _load_clients(client_data: List[Dict], num_resources: int) -> Tuple[List[List[int]], List[List[int]]]:
    """
    Load client declarations from scenario data.

    Args:
        client_data: List of client dictionaries
        num_resources: Number of resource types in system

    Returns:
        Tuple of (maximum matrix, allocation matrix), ordered by client_id
    """
    if not isinstance(client_data, list):
        raise ScenarioLoadError("'clients' must be a list")

    for index, client in enumerate(client_data):
        if not isinstance(client, dict):
            raise ScenarioLoadError(f"Client {index}: must be an object, got {client!r}")
        for field in ['client_id', 'max_demand']:
            if field not in client:
                raise ScenarioLoadError(f"Client missing required field: {field}")
        _int_value(client['client_id'], f"Client {index} client_id")

    ordered = sorted(client_data, key=lambda c: c['client_id'])
    client_ids = [c['client_id'] for c in ordered]
    if client_ids != list(range(len(ordered))):
        raise ScenarioLoadError(f"Client ids must be 0..{len(ordered) - 1}, got {client_ids}")

    maximum = []
    allocation = []
    for client in ordered:
        cid = client['client_id']
        max_demand = _int_vector(client['max_demand'], f"P{cid} max_demand")
        held = _int_vector(client.get('allocation', [0] * num_resources), f"P{cid} allocation")

        if len(max_demand) != num_resources:
            raise ScenarioLoadError(
                f"Client {cid}: max_demand length ({len(max_demand)}) "
                f"does not match resource count ({num_resources})"
            )
        if len(held) != num_resources:
            raise ScenarioLoadError(f"Client {cid}: allocation length mismatch")

        maximum.append(max_demand)
        allocation.append(held)

    return maximum, allocation


def _load_requests(request_data: List[Dict], num_resources: int) -> List[ResourceRequest]:
    """
    Load the requests to evaluate, in file order.

    Only structure is checked here; client ids and amounts are judged by
    the admission controller so that bad requests are denied, not rejected.
    """
    if not isinstance(request_data, list):
        raise ScenarioLoadError("'requests' must be a list")

    requests = []
    for index, req in enumerate(request_data):
        if not isinstance(req, dict):
            raise ScenarioLoadError(f"Request {index}: must be an object, got {req!r}")
        if 'client_id' not in req:
            raise ScenarioLoadError(f"Request {index}: missing 'client_id'")
        if 'request' not in req:
            raise ScenarioLoadError(f"Request {index}: missing 'request'")

        requests.append(ResourceRequest(
            client_id=_int_value(req['client_id'], f"Request {index} client_id"),
            amounts=_int_vector(req['request'], f"Request {index}"),
            label=req.get('label', f"request {index}")
        ))

    return requests


def _int_value(value: Any, context: str) -> int:
    """Reject non-integers (bool is excluded even though it subclasses int)."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ScenarioLoadError(f"{context}: expected an integer, got {value!r}")
    return value


def _int_vector(values: Any, context: str) -> List[int]:
    if not isinstance(values, list):
        raise ScenarioLoadError(f"{context}: expected a list of integers, got {values!r}")
    return [_int_value(v, context) for v in values]


def get_scenario_description(file_path: str) -> str:
    """
    Get description from scenario file without full loading.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Description string, or empty string if not present
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError):
        return ''
    return data.get('description', '') if isinstance(data, dict) else ''
