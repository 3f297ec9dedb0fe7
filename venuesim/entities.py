# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# entities.py
# -----------------------------------------------------------------------------
# Purpose:
#   Entity definitions for the venue simulation: CustomerGroup, OrderItem,
#   Venue (settings/stats/finances/inventory) and Staff.
#
# Design notes:
#   - A CustomerGroup is one party sharing a table, an order and a status.
#   - Cross references (venue, staff) are plain ids resolved through the
#     SimulationContext on every use; staff can be fired between ticks.
#   - The assigned table is an ephemeral descriptor, not a layout resource.
#
# Usage:
#   from venuesim.entities import CustomerGroup, OrderItem, Venue, Staff
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .clock import GameTime


class CustomerStatus(str, Enum):
    ENTERING = "entering"
    SEATED = "seated"
    ORDERING = "ordering"
    WAITING = "waiting"
    EATING = "eating"
    DRINKING = "drinking"
    PAYING = "paying"
    LEAVING = "leaving"


# Statuses that hold a table for occupancy purposes
SEATED_STATUSES = (
    CustomerStatus.SEATED,
    CustomerStatus.ORDERING,
    CustomerStatus.WAITING,
    CustomerStatus.EATING,
    CustomerStatus.DRINKING,
)


class ItemType(str, Enum):
    DRINK = "drink"
    FOOD = "food"


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


@dataclass
class OrderItem:
    type: ItemType
    item: str
    price: float
    prepared: bool = False


@dataclass
class Preferences:
    music: int = 0                   # 0-100, higher = louder preferred
    lighting: int = 0                # 0-100, higher = brighter preferred
    quality_importance: int = 0      # 0-100, quality over price
    speed_importance: int = 0        # 0-100
    preferred_drinks: List[str] = field(default_factory=list)
    preferred_food: List[str] = field(default_factory=list)

    def likes(self, order: OrderItem) -> bool:
        if order.type == ItemType.DRINK:
            return order.item in self.preferred_drinks
        return order.item in self.preferred_food


@dataclass
class TableAssignment:
    table_id: str
    size: str                        # 'small' | 'medium' | 'large'


@dataclass
class CustomerGroup:
    cid: str
    venue_id: str
    type: str
    group_size: int
    arrival_time: GameTime
    patience: float                  # no lower clamp; <= 0 forces departure
    spending_budget: float           # per person
    preferences: Preferences = field(default_factory=Preferences)
    satisfaction: float = 70.0
    status: CustomerStatus = CustomerStatus.ENTERING
    assigned_staff: Optional[str] = None
    assigned_table: Optional[TableAssignment] = None
    orders: List[OrderItem] = field(default_factory=list)
    total_spending: float = 0.0
    order_time: Optional[GameTime] = None
    serve_time: Optional[GameTime] = None
    payment_time: Optional[GameTime] = None
    leave_time: Optional[GameTime] = None
    ready_to_order_after: int = 5    # minutes after arrival before ordering
    entrance_fee_paid: bool = False
    created_tick: int = 0

    def __post_init__(self):
        if self.group_size < 1:
            raise ValueError(f"group_size must be >= 1, got {self.group_size}")

    def budget_limit(self) -> float:
        return self.spending_budget * self.group_size

    def adjust_satisfaction(self, delta: float) -> float:
        self.satisfaction = clamp(self.satisfaction + delta)
        return self.satisfaction

    def has_food(self) -> bool:
        return any(o.type == ItemType.FOOD for o in self.orders)


@dataclass
class InventoryItem:
    name: str
    stock: int
    sell_price: float


@dataclass
class Inventory:
    drinks: List[InventoryItem] = field(default_factory=list)
    food: List[InventoryItem] = field(default_factory=list)

    def items(self, item_type: ItemType) -> List[InventoryItem]:
        return self.drinks if item_type == ItemType.DRINK else self.food

    def find(self, item_type: ItemType, name: str) -> Optional[InventoryItem]:
        for it in self.items(item_type):
            if it.name == name:
                return it
        return None

    def in_stock(self, item_type: ItemType) -> List[InventoryItem]:
        return [it for it in self.items(item_type) if it.stock > 0]


@dataclass
class VenueSettings:
    capacity: int = 30
    opening_hour: int = 9
    closing_hour: int = 22
    music_volume: float = 50.0
    lighting_level: float = 50.0
    entrance_fee: float = 0.0


@dataclass
class VenueStats:
    cleanliness: float = 100.0
    atmosphere: float = 50.0
    service_quality: float = 50.0
    popularity: float = 50.0
    customer_satisfaction: float = 50.0
    total_customers_served: int = 0


@dataclass
class VenueFinances:
    daily_revenue: float = 0.0
    weekly_revenue: float = 0.0
    monthly_revenue: float = 0.0

    def record(self, amount: float):
        self.daily_revenue += amount
        self.weekly_revenue += amount
        self.monthly_revenue += amount


@dataclass
class Venue:
    vid: str
    name: str
    type: str                        # key into cfg["venue_types"]
    city: str = ""
    settings: VenueSettings = field(default_factory=VenueSettings)
    stats: VenueStats = field(default_factory=VenueStats)
    finances: VenueFinances = field(default_factory=VenueFinances)
    inventory: Inventory = field(default_factory=Inventory)
    is_open: bool = False            # open state seen on the previous tick

    def is_open_at(self, hour: int) -> bool:
        opening = self.settings.opening_hour
        closing = self.settings.closing_hour
        if closing < opening:
            # closes after midnight
            return hour >= opening or hour < closing
        return opening <= hour < closing


@dataclass
class Staff:
    sid: str
    name: str
    type: str                        # 'waiter' | 'bartender' | 'cook' | ...
    venue_id: str
    is_working: bool = True
    skills: Dict[str, float] = field(default_factory=dict)
    friendliness: float = 0.0

    def skill(self, name: str, default: float = 0.0) -> float:
        return float(self.skills.get(name, default))

    def average_skill(self) -> Optional[float]:
        if not self.skills:
            return None
        return sum(self.skills.values()) / len(self.skills)
