from __future__ import annotations

import logging
from typing import Dict

from .db import DocumentStore
from .schemas import Category, Component, User

logger = logging.getLogger(__name__)


DEMO_USERS = [
    User(id="u-admin", name="Demo Admin", email="admin@example.com", role="admin"),
    User(id="u-user", name="Demo User", email="user@example.com", role="user"),
    User(id="u-assembler", name="Demo Assembler", email="assembler@example.com", role="assembler"),
    User(id="u-supplier", name="Demo Supplier", email="supplier@example.com", role="supplier"),
]

DEMO_CATEGORIES = [
    Category(id="cat-cpu", name="CPU", description="Processors", priority=3),
    Category(id="cat-gpu", name="GPU", description="Graphics cards", priority=4),
    Category(id="cat-motherboard", name="MOTHERBOARD", description="Motherboards", priority=2),
    Category(id="cat-ram", name="RAM", description="Memory kits", priority=1),
    Category(id="cat-storage", name="STORAGE", description="SSDs and hard drives", priority=1),
    Category(id="cat-psu", name="PSU", description="Power supplies", priority=1),
    Category(id="cat-case", name="CASE", description="Cases", priority=1),
]

DEMO_COMPONENTS = [
    # CPUs
    Component(
        id="cpu-i7-13700k",
        name="Intel Core i7-13700K",
        category="CPU",
        price=399.99,
        specifications="13th Gen, 16 cores (8P+8E), 3.4GHz base, 5.4GHz boost",
        compatibility="LGA 1700",
        socket="LGA1700",
        chipset="Z790",
        power_requirement=125,
    ),
    Component(
        id="cpu-r7-7700x",
        name="AMD Ryzen 7 7700X",
        category="CPU",
        price=399.99,
        specifications="Zen 4, 8 cores, 4.5GHz base, 5.4GHz boost",
        compatibility="AM5",
        socket="AM5",
        chipset="B650",
        power_requirement=105,
    ),
    Component(
        id="cpu-i5-13400",
        name="Intel Core i5-13400",
        category="CPU",
        price=229.99,
        specifications="13th Gen, 10 cores (6P+4E), 2.5GHz base, 4.6GHz boost",
        compatibility="LGA 1700",
        socket="LGA1700",
        chipset="B760",
        power_requirement=65,
    ),
    Component(
        id="cpu-r5-5600",
        name="AMD Ryzen 5 5600",
        category="CPU",
        price=139.99,
        specifications="Zen 3, 6 cores, 3.5GHz base, 4.4GHz boost",
        compatibility="AM4",
        socket="AM4",
        chipset="B550",
        power_requirement=65,
        stock_status=False,
    ),
    # GPUs
    Component(
        id="gpu-rtx-4070",
        name="NVIDIA GeForce RTX 4070",
        category="GPU",
        price=599.99,
        specifications="12GB GDDR6X, 192-bit bus, Ray Tracing, DLSS 3",
        compatibility="PCIe 4.0",
        power_requirement=200,
    ),
    Component(
        id="gpu-rx-7800xt",
        name="AMD Radeon RX 7800 XT",
        category="GPU",
        price=499.99,
        specifications="16GB GDDR6, 256-bit bus, FSR support",
        compatibility="PCIe 4.0",
        power_requirement=263,
    ),
    Component(
        id="gpu-rtx-4060",
        name="NVIDIA GeForce RTX 4060",
        category="GPU",
        price=299.99,
        specifications="8GB GDDR6, 128-bit bus, DLSS 3",
        compatibility="PCIe 4.0",
        power_requirement=115,
    ),
    # Motherboards
    Component(
        id="mb-z790-e",
        name="ASUS ROG STRIX Z790-E",
        category="MOTHERBOARD",
        price=379.99,
        specifications="ATX, DDR5, PCIe 5.0, WiFi 6E",
        compatibility="LGA 1700",
        socket="LGA1700",
        chipset="Z790",
        form_factor="ATX",
        ram_type="DDR5",
    ),
    Component(
        id="mb-b650-tomahawk",
        name="MSI MAG B650 TOMAHAWK",
        category="MOTHERBOARD",
        price=219.99,
        specifications="ATX, DDR5, PCIe 4.0, 2.5G LAN",
        compatibility="AM5",
        socket="AM5",
        chipset="B650",
        form_factor="ATX",
        ram_type="DDR5",
    ),
    Component(
        id="mb-b760m-ds3h",
        name="Gigabyte B760M DS3H",
        category="MOTHERBOARD",
        price=129.99,
        specifications="Micro-ATX, DDR4, PCIe 4.0",
        compatibility="LGA 1700",
        socket="LGA1700",
        chipset="B760",
        form_factor="M-ATX",
        ram_type="DDR4",
    ),
    # Memory
    Component(
        id="ram-ddr5-32",
        name="Corsair Vengeance DDR5 32GB (2x16) 6000",
        category="RAM",
        price=109.99,
        specifications="32GB kit, 6000MT/s, CL36",
        ram_type="DDR5",
    ),
    Component(
        id="ram-ddr4-16",
        name="Kingston FURY Beast DDR4 16GB (2x8) 3200",
        category="RAM",
        price=49.99,
        specifications="16GB kit, 3200MT/s, CL16",
        ram_type="DDR4",
    ),
    # Storage
    Component(
        id="ssd-990-pro",
        name="Samsung 990 PRO 1TB",
        category="STORAGE",
        price=109.99,
        specifications="PCIe 4.0 NVMe, 7450MB/s read",
        storage_interface="NVMe",
    ),
    Component(
        id="ssd-mx500",
        name="Crucial MX500 1TB",
        category="STORAGE",
        price=64.99,
        specifications="2.5-inch SATA SSD, 560MB/s read",
        storage_interface="SATA",
    ),
    # Power supplies
    Component(
        id="psu-rm850x",
        name="Corsair RM850x",
        category="PSU",
        price=129.99,
        specifications="850W 80+ Gold, fully modular",
        wattage=850,
    ),
    Component(
        id="psu-evga-500",
        name="EVGA 500 W1",
        category="PSU",
        price=44.99,
        specifications="500W 80+ White, non-modular",
    ),
    # Cases
    Component(
        id="case-north",
        name="Fractal Design North",
        category="CASE",
        price=139.99,
        specifications="Mid tower, tempered glass, wood front panel",
        form_factor="ATX",
    ),
    Component(
        id="case-nr200p",
        name="Cooler Master NR200P",
        category="CASE",
        price=99.99,
        specifications="Mini-ITX, 18.25L",
        form_factor="ITX",
    ),
]


def seed_demo_data(store: DocumentStore) -> Dict[str, int]:
    """Insert the demo catalog and one user per role; no-op on a non-empty store."""
    if not store.is_empty():
        logger.info("Store already holds data, skipping demo seed")
        return {"users": 0, "categories": 0, "components": 0}

    for user in DEMO_USERS:
        store.insert("users", user.to_document())
    for category in DEMO_CATEGORIES:
        store.insert("categories", category.to_document())
    for component in DEMO_COMPONENTS:
        supplied = component.model_copy(update={"supplier_id": "u-supplier"})
        store.insert("components", supplied.to_document())

    counts = {
        "users": len(DEMO_USERS),
        "categories": len(DEMO_CATEGORIES),
        "components": len(DEMO_COMPONENTS),
    }
    logger.info("Seeded demo data: %s", counts)
    return counts
