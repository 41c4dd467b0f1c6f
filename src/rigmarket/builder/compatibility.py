"""
兼容性检查模块 - Compatibility Check Module

根据结构化兼容字段检查一组配件，结构化字段为空时才回退到自由文本提取。
Check a set of components against their structured compatibility fields,
falling back to free-text extraction only when those fields are blank.

规则顺序 Rule order (fixed, drives the order of issues/warnings):
    socket → chipset → form factor → RAM → power → storage → presence
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..schemas import CompatibilityVerdict
from .fields import category_key, read_field, to_number, to_text


SUMMARY_COMPATIBLE = "Build is compatible"
SUMMARY_ISSUES = "Compatibility issues found"

# 主板芯片组 -> 可接受的 CPU 芯片组（仅作参考，数据质量不足以判定硬性失败）
# Motherboard chipset -> accepted CPU chipsets. Advisory only.
CHIPSET_COMPATIBILITY: Dict[str, tuple] = {
    "Z690": ("Z690", "B660", "H670"),
    "B660": ("Z690", "B660", "H670"),
    "Z790": ("Z790", "B760", "H770"),
    "B550": ("B550", "X570"),
    "X570": ("B550", "X570"),
    "B650": ("B650", "X670"),
    "X670": ("B650", "X670"),
}

FORM_FACTOR_SIZE: Dict[str, int] = {
    "ITX": 1,
    "M-ATX": 2,
    "MATX": 2,
    "MICRO-ATX": 2,
    "ATX": 3,
    "E-ATX": 4,
    "EXTENDED-ATX": 4,
}

SUPPORTED_STORAGE_INTERFACES = ("SATA", "NVME", "NVME M.2", "M.2")

DEFAULT_CPU_POWER = 150
DEFAULT_GPU_POWER = 200
BASELINE_POWER = 100  # RAM, storage, fans and the rest

_SOCKET_PATTERNS = (
    re.compile(r"LGA\s*\d+", re.IGNORECASE),
    re.compile(r"AM\d+", re.IGNORECASE),
    re.compile(r"Socket\s*\w+", re.IGNORECASE),
    re.compile(r"[A-Z]{2,3}\s*\d+", re.IGNORECASE),
)
_WATTAGE_PATTERN = re.compile(r"(\d+)\s*W", re.IGNORECASE)


@dataclass(frozen=True)
class PartProfile:
    """
    配件标准化视图 - Normalized Part Profile

    在边界处一次性完成去空格与大写化，规则内部不再重复处理。
    Trimmed and upper-cased once at the boundary so rules compare plain strings.
    """

    category: str
    name: str
    socket: str
    chipset: str
    form_factor: str
    ram_type: str
    storage_interface: str
    power_requirement: Optional[int]
    wattage: Optional[int]
    specifications: str
    compatibility: str


def _positive_int(value: Any) -> Optional[int]:
    number = to_number(value)
    if number is None or number <= 0:
        return None
    return int(number)


def normalize_socket(value: str) -> str:
    return re.sub(r"\s+", "", value or "").upper()


def extract_socket(text: str) -> str:
    """从自由文本提取插槽 - Extract a socket token such as LGA1700 or AM5."""
    if not text:
        return ""
    for pattern in _SOCKET_PATTERNS:
        match = pattern.search(text)
        if match:
            return normalize_socket(match.group(0))
    return ""


def extract_wattage(text: str) -> Optional[int]:
    if not text:
        return None
    match = _WATTAGE_PATTERN.search(text)
    if match:
        return int(match.group(1))
    return None


def profile(item: Any) -> PartProfile:
    return PartProfile(
        category=category_key(item),
        name=to_text(read_field(item, "name")),
        socket=normalize_socket(to_text(read_field(item, "socket"))),
        chipset=to_text(read_field(item, "chipset")).upper(),
        form_factor=to_text(read_field(item, "form_factor", "formFactor")).upper(),
        ram_type=to_text(read_field(item, "ram_type", "ramType")).upper(),
        storage_interface=to_text(read_field(item, "storage_interface", "storageInterface")).upper(),
        power_requirement=_positive_int(read_field(item, "power_requirement", "powerRequirement")),
        wattage=_positive_int(read_field(item, "wattage")),
        specifications=to_text(read_field(item, "specifications")),
        compatibility=to_text(read_field(item, "compatibility")),
    )


def _first_by_category(profiles: List[PartProfile]) -> Dict[str, PartProfile]:
    # 每个类别只检查输入顺序中的第一个配件
    # Only the first component of each category (input order) is checked.
    parts: Dict[str, PartProfile] = {}
    for part in profiles:
        if part.category and part.category not in parts:
            parts[part.category] = part
    return parts


def _resolve_socket(part: PartProfile) -> str:
    if part.socket:
        return part.socket
    return extract_socket(part.compatibility or part.specifications)


def estimate_power_requirement(cpu: Optional[PartProfile], gpu: Optional[PartProfile]) -> int:
    """
    估算整机功耗 - Estimate System Power Requirement

    CPU 缺省 150W，显卡缺省 200W，其余配件固定 100W；未选的配件不计入。
    CPU defaults to 150W and GPU to 200W when their requirement is unknown;
    a fixed 100W covers everything else. Parts not selected add nothing.
    """
    need = BASELINE_POWER
    if cpu is not None:
        need += cpu.power_requirement or DEFAULT_CPU_POWER
    if gpu is not None:
        need += gpu.power_requirement or DEFAULT_GPU_POWER
    return need


def _check_socket(cpu, motherboard, issues: List[str], warnings: List[str]) -> None:
    """
    插槽比较前去掉所有空白并转大写，"LGA 1700" 与 "lga1700" 视为相同。
    Sockets are compared upper-cased with all whitespace removed, so
    "LGA 1700" and "lga1700" match.
    """
    if cpu is None or motherboard is None:
        return
    cpu_socket = _resolve_socket(cpu)
    mb_socket = _resolve_socket(motherboard)
    if cpu_socket and mb_socket:
        if cpu_socket != mb_socket:
            issues.append(f"CPU socket ({cpu_socket}) does not match Motherboard socket ({mb_socket})")
        else:
            warnings.append(f"✓ CPU and Motherboard socket compatibility verified ({cpu_socket})")
    else:
        warnings.append("⚠ Socket information missing - compatibility cannot be verified")


def _check_chipset(cpu, motherboard, warnings: List[str]) -> None:
    if cpu is None or motherboard is None:
        return
    if not cpu.chipset or not motherboard.chipset:
        return
    accepted = CHIPSET_COMPATIBILITY.get(motherboard.chipset, (motherboard.chipset,))
    cpu_base = cpu.chipset.split()[0]
    if cpu_base not in accepted and cpu.chipset not in accepted:
        warnings.append(
            f"⚠ CPU chipset ({cpu.chipset}) may not be fully compatible "
            f"with Motherboard chipset ({motherboard.chipset})"
        )


def _check_form_factor(case, motherboard, issues: List[str], warnings: List[str]) -> None:
    if case is None or motherboard is None:
        return
    case_size = FORM_FACTOR_SIZE.get(case.form_factor, 0)
    mb_size = FORM_FACTOR_SIZE.get(motherboard.form_factor, 0)
    if not case_size or not mb_size:
        return
    if case_size < mb_size:
        issues.append(
            f"Case form factor ({case.form_factor}) is too small "
            f"for Motherboard form factor ({motherboard.form_factor})"
        )
    else:
        warnings.append(
            f"✓ Case form factor ({case.form_factor}) is compatible with Motherboard ({motherboard.form_factor})"
        )


def _check_ram(ram, motherboard, issues: List[str], warnings: List[str]) -> None:
    if ram is None or motherboard is None:
        return
    if not ram.ram_type or not motherboard.ram_type:
        return
    if ram.ram_type != motherboard.ram_type:
        issues.append(f"RAM type ({ram.ram_type}) does not match Motherboard RAM type ({motherboard.ram_type})")
    else:
        warnings.append(f"✓ RAM type ({ram.ram_type}) is compatible with Motherboard")


def _check_power(psu, cpu, gpu, issues: List[str], warnings: List[str]) -> None:
    if psu is None:
        return
    wattage = psu.wattage or extract_wattage(psu.specifications) or extract_wattage(psu.name)
    if not wattage:
        warnings.append("⚠ PSU wattage unknown - power requirements cannot be verified")
        return
    need = estimate_power_requirement(cpu, gpu)
    if wattage < need:
        issues.append(f"PSU wattage ({wattage}W) is insufficient for this build (estimated need: ~{need}W)")
    else:
        warnings.append(f"✓ PSU wattage ({wattage}W) is sufficient (estimated need: ~{need}W)")


def _check_storage(storage, motherboard, warnings: List[str]) -> None:
    if storage is None or motherboard is None:
        return
    if storage.storage_interface in SUPPORTED_STORAGE_INTERFACES:
        warnings.append(f"✓ Storage interface ({storage.storage_interface}) is typically supported")


def check_compatibility(components: Any) -> CompatibilityVerdict:
    """
    检查硬件兼容性 - Check Hardware Compatibility

    纯函数：相同输入总是得到相同结果；缺失字段只会产生"无法验证"的提示，不会抛异常。
    Pure and total: identical input gives identical output, and missing data
    degrades to "cannot be verified" warnings instead of raising.

    参数 Parameters:
        components: 配件模型或字典的序列，每个类别至多一个（多出的按输入顺序忽略）
                    Sequence of component models or dicts, at most one per
                    category; extra ones are ignored in input order.

    返回 Returns:
        兼容性结论，issues 为硬性问题，warnings 为提示与确认
        Verdict whose issues are hard failures and warnings are notices.
    """
    if isinstance(components, (str, bytes, dict)) or not isinstance(components, Iterable):
        components = []
    parts = _first_by_category([profile(item) for item in components if item is not None])

    cpu = parts.get("CPU")
    motherboard = parts.get("MOTHERBOARD")
    psu = parts.get("PSU")
    gpu = parts.get("GPU")
    ram = parts.get("RAM")
    storage = parts.get("STORAGE")
    case = parts.get("CASE")

    issues: List[str] = []
    warnings: List[str] = []

    _check_socket(cpu, motherboard, issues, warnings)
    _check_chipset(cpu, motherboard, warnings)
    _check_form_factor(case, motherboard, issues, warnings)
    _check_ram(ram, motherboard, issues, warnings)
    _check_power(psu, cpu, gpu, issues, warnings)
    _check_storage(storage, motherboard, warnings)

    if cpu is None:
        warnings.append("⚠ No CPU selected")
    if motherboard is None:
        warnings.append("⚠ No Motherboard selected")
    if psu is None:
        warnings.append("⚠ No PSU selected")

    return CompatibilityVerdict(
        is_compatible=not issues,
        issues=issues,
        warnings=warnings,
        summary=SUMMARY_COMPATIBLE if not issues else SUMMARY_ISSUES,
    )
