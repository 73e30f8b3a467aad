from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

_BINARY_SUFFIXES = {
    "Ki": Decimal(1024),
    "Mi": Decimal(1024**2),
    "Gi": Decimal(1024**3),
    "Ti": Decimal(1024**4),
    "Pi": Decimal(1024**5),
    "Ei": Decimal(1024**6),
}

_DECIMAL_SUFFIXES = {
    "n": Decimal("0.000000001"),
    "u": Decimal("0.000001"),
    "m": Decimal("0.001"),
    "k": Decimal(1000),
    "M": Decimal(1000**2),
    "G": Decimal(1000**3),
    "T": Decimal(1000**4),
    "P": Decimal(1000**5),
    "E": Decimal(1000**6),
}


def parse_quantity(quantity) -> Decimal:
    """
    Parse a Kubernetes quantity ("250m", "1Gi", "2") to Decimal.

    Raises:
        ValueError: If the quantity is not a valid number with a known suffix.
    """
    if quantity is None:
        return Decimal(0)
    if isinstance(quantity, (int, float, Decimal)):
        return Decimal(quantity)

    quantity = str(quantity).strip()
    number, multiplier = quantity, Decimal(1)
    if quantity[-2:] in _BINARY_SUFFIXES:
        number, multiplier = quantity[:-2], _BINARY_SUFFIXES[quantity[-2:]]
    elif quantity[-1:] in _DECIMAL_SUFFIXES:
        number, multiplier = quantity[:-1], _DECIMAL_SUFFIXES[quantity[-1:]]

    try:
        return Decimal(number) * multiplier
    except InvalidOperation as e:
        raise ValueError(f"Invalid Kubernetes quantity: '{quantity}'") from e


def parse_cpu_request(cpu: Optional[str]) -> int:
    """Converts K8s CPU string to millicores (int)."""
    if not cpu:
        return 0
    return int(parse_quantity(cpu) * 1000)


def parse_memory_request(memory: Optional[str]) -> int:
    """Converts K8s memory string to bytes (int)."""
    if not memory:
        return 0
    return int(parse_quantity(memory))


def parse_resource_list(resources: Optional[Dict[str, str]]) -> Dict[str, Decimal]:
    """Parses a ResourceList (allocatable, capacity, requests) into Decimals."""
    return {name: parse_quantity(value) for name, value in (resources or {}).items()}


def container_requests(container) -> Dict[str, Decimal]:
    """Returns a container's resource requests, empty when none are declared."""
    if not container.resources or not container.resources.requests:
        return {}
    return parse_resource_list(container.resources.requests)


def pod_requests(pod) -> Dict[str, Decimal]:
    """Sums the resource requests of every container in the pod."""
    total: Dict[str, Decimal] = {}
    if not pod.spec or not pod.spec.containers:
        return total
    for container in pod.spec.containers:
        for name, value in container_requests(container).items():
            total[name] = total.get(name, Decimal(0)) + value
    return total


def pod_key(pod) -> str:
    """Stable `namespace/name` key of a pod."""
    return f"{pod.metadata.namespace}/{pod.metadata.name}"


def pod_node_name(pod) -> str:
    """Node the pod is bound to, or an empty string while unscheduled."""
    if not pod.spec:
        return ""
    return pod.spec.node_name or ""


def node_label(node, key: str) -> Optional[str]:
    labels = node.metadata.labels or {}
    return labels.get(key)


def selector_matches(match_labels: Optional[Dict[str, str]], labels: Optional[Dict[str, str]]) -> bool:
    """True when every `matchLabels` pair is present on the object labels; an empty selector matches everything."""
    labels = labels or {}
    return all(labels.get(key) == value for key, value in (match_labels or {}).items())
