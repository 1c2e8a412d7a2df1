"""
Kubecost Allocation API data model.

Mirrors the ``Allocation`` and response envelope structures of the OpenCost
cost model (pkg/kubecost/allocation.go and pkg/costmodel/router.go).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional


class ModelError(ValueError):
    """Raised when API data does not have the expected shape."""


class NumericField(NamedTuple):
    attribute: str
    json_key: str
    exported: str


NUMERIC_FIELDS: List[NumericField] = [
    NumericField("minutes", "minutes", "Minutes"),
    NumericField("cpu_cores", "cpuCores", "CPUCores"),
    NumericField("cpu_core_request_average", "cpuCoreRequestAverage", "CPUCoreRequestAverage"),
    NumericField("cpu_core_usage_average", "cpuCoreUsageAverage", "CPUCoreUsageAverage"),
    NumericField("cpu_core_hours", "cpuCoreHours", "CPUCoreHours"),
    NumericField("cpu_cost", "cpuCost", "CPUCost"),
    NumericField("cpu_cost_adjustment", "cpuCostAdjustment", "CPUCostAdjustment"),
    NumericField("cpu_efficiency", "cpuEfficiency", "CPUEfficiency"),
    NumericField("gpu_count", "gpuCount", "GPUCount"),
    NumericField("gpu_hours", "gpuHours", "GPUHours"),
    NumericField("gpu_cost", "gpuCost", "GPUCost"),
    NumericField("gpu_cost_adjustment", "gpuCostAdjustment", "GPUCostAdjustment"),
    NumericField("network_transfer_bytes", "networkTransferBytes", "NetworkTransferBytes"),
    NumericField("network_receive_bytes", "networkReceiveBytes", "NetworkReceiveBytes"),
    NumericField("network_cost", "networkCost", "NetworkCost"),
    NumericField("network_cost_adjustment", "networkCostAdjustment", "NetworkCostAdjustment"),
    NumericField("load_balancer_cost", "loadBalancerCost", "LoadBalancerCost"),
    NumericField(
        "load_balancer_cost_adjustment", "loadBalancerCostAdjustment", "LoadBalancerCostAdjustment"
    ),
    NumericField("pv_bytes", "pvBytes", "PVBytes"),
    NumericField("pv_byte_hours", "pvByteHours", "PVByteHours"),
    NumericField("pv_cost", "pvCost", "PVCost"),
    NumericField("pv_cost_adjustment", "pvCostAdjustment", "PVCostAdjustment"),
    NumericField("ram_bytes", "ramBytes", "RAMBytes"),
    NumericField("ram_byte_request_average", "ramByteRequestAverage", "RAMByteRequestAverage"),
    NumericField("ram_byte_usage_average", "ramByteUsageAverage", "RAMByteUsageAverage"),
    NumericField("ram_byte_hours", "ramByteHours", "RAMByteHours"),
    NumericField("ram_cost", "ramCost", "RAMCost"),
    NumericField("ram_cost_adjustment", "ramCostAdjustment", "RAMCostAdjustment"),
    NumericField("ram_efficiency", "ramEfficiency", "RAMEfficiency"),
    NumericField("shared_cost", "sharedCost", "SharedCost"),
    NumericField("external_cost", "externalCost", "ExternalCost"),
    NumericField("total_cost", "totalCost", "TotalCost"),
    NumericField("total_efficiency", "totalEfficiency", "TotalEfficiency"),
]


@dataclass(frozen=True, slots=True)
class AllocationRecord:
    """A single cost allocation, e.g. one namespace or pod over one window."""

    name: str = ""
    properties: Dict[str, Any] = field(default_factory=dict)
    window: Dict[str, Any] = field(default_factory=dict)
    start: str = ""
    end: str = ""
    minutes: float = 0.0
    cpu_cores: float = 0.0
    cpu_core_request_average: float = 0.0
    cpu_core_usage_average: float = 0.0
    cpu_core_hours: float = 0.0
    cpu_cost: float = 0.0
    cpu_cost_adjustment: float = 0.0
    cpu_efficiency: float = 0.0
    gpu_count: float = 0.0
    gpu_hours: float = 0.0
    gpu_cost: float = 0.0
    gpu_cost_adjustment: float = 0.0
    network_transfer_bytes: float = 0.0
    network_receive_bytes: float = 0.0
    network_cost: float = 0.0
    network_cost_adjustment: float = 0.0
    load_balancer_cost: float = 0.0
    load_balancer_cost_adjustment: float = 0.0
    pv_bytes: float = 0.0
    pv_byte_hours: float = 0.0
    pv_cost: float = 0.0
    pvs: Dict[str, Any] = field(default_factory=dict)
    pv_cost_adjustment: float = 0.0
    ram_bytes: float = 0.0
    ram_byte_request_average: float = 0.0
    ram_byte_usage_average: float = 0.0
    ram_byte_hours: float = 0.0
    ram_cost: float = 0.0
    ram_cost_adjustment: float = 0.0
    ram_efficiency: float = 0.0
    shared_cost: float = 0.0
    external_cost: float = 0.0
    total_cost: float = 0.0
    total_efficiency: float = 0.0
    raw_allocation_only: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AllocationRecord":
        """
        Build a record from a decoded JSON object.

        Missing or null numbers become 0.0 and missing or null objects become
        empty mappings. Unknown keys are ignored.

        Raises:
            ModelError: If a field holds a value of the wrong type
        """
        if not isinstance(data, Mapping):
            raise ModelError(f"allocation must be an object, got {type(data).__name__}")

        values: Dict[str, Any] = {
            "name": _string(data, "name"),
            "properties": _mapping(data, "properties"),
            "window": _mapping(data, "window"),
            "start": _string(data, "start"),
            "end": _string(data, "end"),
            "pvs": _mapping(data, "pvs"),
            "raw_allocation_only": _mapping(data, "rawAllocationOnly"),
        }
        for numeric in NUMERIC_FIELDS:
            values[numeric.attribute] = _number(data, numeric.json_key)
        return cls(**values)

    def value_of(self, name: str) -> float:
        """Return the numeric field called ``name``, or 0.0 if there is no such field."""
        return field_accessor(name)(self)


def _string(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ModelError(f"field '{key}' must be a string, got {type(value).__name__}")
    return value


def _mapping(data: Mapping[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ModelError(f"field '{key}' must be an object, got {type(value).__name__}")
    return dict(value)


def _number(data: Mapping[str, Any], key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ModelError(f"field '{key}' must be a number, got {type(value).__name__}")
    return float(value)


Accessor = Callable[[AllocationRecord], float]


def _zero(_record: AllocationRecord) -> float:
    return 0.0


def _build_accessors() -> Dict[str, Accessor]:
    accessors: Dict[str, Accessor] = {}
    for numeric in NUMERIC_FIELDS:
        getter = attrgetter(numeric.attribute)
        for alias in numeric:
            accessors[alias] = getter
    return accessors


# Every numeric field is reachable by attribute, JSON key and exported name
FIELD_ACCESSORS: Dict[str, Accessor] = _build_accessors()


def field_accessor(name: str) -> Accessor:
    """Return the accessor for a numeric field; unknown names read as zero."""
    return FIELD_ACCESSORS.get(name, _zero)


def is_known_field(name: str) -> bool:
    return name in FIELD_ACCESSORS


@dataclass
class AllocationResponse:
    """Allocation API response envelope."""

    code: int
    status: str
    data: List[Dict[str, AllocationRecord]] = field(default_factory=list)
    message: Optional[str] = None
    warning: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "AllocationResponse":
        """
        Decode the envelope and every allocation it carries.

        Raises:
            ModelError: If the payload does not match the envelope shape
        """
        if not isinstance(payload, Mapping):
            raise ModelError(f"response must be an object, got {type(payload).__name__}")

        code = payload.get("code", 0)
        if isinstance(code, bool) or not isinstance(code, int):
            raise ModelError(f"field 'code' must be an integer, got {type(code).__name__}")

        raw_data = payload.get("data")
        if raw_data is None:
            raw_data = []
        if not isinstance(raw_data, list):
            raise ModelError(f"field 'data' must be an array, got {type(raw_data).__name__}")

        data: List[Dict[str, AllocationRecord]] = []
        for bucket in raw_data:
            if bucket is None:
                bucket = {}
            if not isinstance(bucket, Mapping):
                raise ModelError(
                    f"aggregation set must be an object, got {type(bucket).__name__}"
                )
            data.append(
                {
                    key: AllocationRecord.from_dict({} if value is None else value)
                    for key, value in bucket.items()
                }
            )

        return cls(
            code=code,
            status=_string(payload, "status"),
            data=data,
            message=payload.get("message"),
            warning=payload.get("warning"),
        )

    def records(self) -> List[AllocationRecord]:
        """
        Flatten all aggregation sets into one list, in encounter order.

        Data is grouped by aggregation: each set maps the aggregated value (e.g. a
        namespace name) to its allocation. The keys are discarded.
        """
        return [record for bucket in self.data for record in bucket.values()]


