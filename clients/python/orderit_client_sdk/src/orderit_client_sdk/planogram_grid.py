from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterable, Mapping

from .directory_cache import DirectoryCache
from .exceptions import ApiError, PlanogramUnavailableError
from .models import GRID_SIZE, Distribution, Order, OrderLine, Planogram, Product, is_placeholder_name

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class GridCell:
    row: int
    col: int
    product_id: str | None = None
    product_name: str = ""
    sku: str = ""
    price: Decimal = ZERO
    quantity: int = 0

    @property
    def is_empty(self) -> bool:
        return self.product_id is None

    @property
    def value(self) -> Decimal:
        return self.quantity * self.price


@dataclass(frozen=True)
class GridConflict:
    """Two distributions claimed the same cell; the later one was kept."""

    row: int
    col: int
    kept_product_id: str
    dropped_product_id: str


def _check_position(row: int, col: int) -> None:
    if not (0 <= row < GRID_SIZE and 0 <= col < GRID_SIZE):
        raise ValueError(f"cell ({row}, {col}) is outside the {GRID_SIZE}x{GRID_SIZE} grid")


@dataclass(frozen=True)
class PlanogramGrid:
    cells: tuple[GridCell, ...]
    conflicts: tuple[GridConflict, ...] = ()
    planogram_id: str | None = None
    _index: dict[tuple[int, int], int] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if len(self.cells) != GRID_SIZE * GRID_SIZE:
            raise ValueError(f"a planogram grid holds exactly {GRID_SIZE * GRID_SIZE} cells, got {len(self.cells)}")
        index = {(cell.row, cell.col): position for position, cell in enumerate(self.cells)}
        if len(index) != len(self.cells):
            raise ValueError("grid cells must have unique coordinates")
        object.__setattr__(self, "_index", index)

    @classmethod
    def empty(cls, planogram_id: str | None = None) -> PlanogramGrid:
        return cls(
            cells=tuple(GridCell(row, col) for row in range(GRID_SIZE) for col in range(GRID_SIZE)),
            planogram_id=planogram_id,
        )

    def cell(self, row: int, col: int) -> GridCell:
        _check_position(row, col)
        return self.cells[self._index[(row, col)]]

    def rows(self) -> tuple[tuple[GridCell, ...], ...]:
        return tuple(tuple(self.cell(row, col) for col in range(GRID_SIZE)) for row in range(GRID_SIZE))

    def set_quantity(self, row: int, col: int, value: int) -> PlanogramGrid:
        """Return a new grid with the cell's quantity replaced, never below zero."""
        current = self.cell(row, col)
        updated = replace(current, quantity=max(0, int(value)))
        cells = list(self.cells)
        cells[self._index[(row, col)]] = updated
        return replace(self, cells=tuple(cells))

    @property
    def ordered_product_count(self) -> int:
        return len({cell.product_id for cell in self.cells if cell.product_id and cell.quantity > 0})

    @property
    def total_units(self) -> int:
        return sum(cell.quantity for cell in self.cells)

    @property
    def total_value(self) -> Decimal:
        return sum((cell.value for cell in self.cells if cell.product_id), ZERO)

    def to_order_lines(self) -> list[OrderLine]:
        """Collapse ordered cells into one line per product, in grid order."""
        merged: dict[str, OrderLine] = {}
        for cell in self.cells:
            if not cell.product_id or cell.quantity <= 0:
                continue
            existing = merged.get(cell.product_id)
            if existing is None:
                merged[cell.product_id] = OrderLine(
                    product_id=cell.product_id,
                    product_name=cell.product_name,
                    sku=cell.sku,
                    quantity=cell.quantity,
                    price=cell.price,
                    row=cell.row,
                    col=cell.col,
                )
            else:
                merged[cell.product_id] = existing.model_copy(update={"quantity": existing.quantity + cell.quantity})
        return list(merged.values())


def _products_by_id(products: Mapping[str, Product] | Iterable[Product] | None) -> dict[str, Product]:
    if products is None:
        return {}
    if isinstance(products, Mapping):
        return dict(products)
    return {product.id: product for product in products if product.id}


def _lines_by_product(order_lines: Iterable[OrderLine]) -> dict[str, OrderLine]:
    lines: dict[str, OrderLine] = {}
    for line in order_lines:
        if not line.product_id:
            continue
        existing = lines.get(line.product_id)
        if existing is None:
            lines[line.product_id] = line
            continue
        price = existing.price if existing.price > ZERO else line.price
        lines[line.product_id] = existing.model_copy(
            update={"quantity": existing.quantity + line.quantity, "price": price}
        )
    return lines


def _cell_for(
    distribution: Distribution,
    line: OrderLine | None,
    product: Product | None,
) -> GridCell:
    name = ""
    sku = ""
    price = ZERO
    quantity = 0
    if line is not None:
        quantity = line.quantity
        price = line.price
        sku = line.sku
        if not is_placeholder_name(line.product_name):
            name = line.product_name
    if product is not None:
        if price <= ZERO:
            price = product.current_price
        name = name or product.name
        sku = sku or product.sku
    return GridCell(
        row=distribution.row,
        col=distribution.col,
        product_id=distribution.product_id,
        product_name=name,
        sku=sku,
        price=price,
        quantity=quantity,
    )


def build_grid(
    distributions: Iterable[Distribution],
    order_lines: Iterable[OrderLine] = (),
    products: Mapping[str, Product] | Iterable[Product] | None = None,
    planogram_id: str | None = None,
) -> PlanogramGrid:
    """Lay an order out on a 10x10 planogram.

    Positions are clamped into the grid. When two distributions claim one
    cell the later one wins and the clash is kept in ``conflicts``.
    """
    catalog = _products_by_id(products)
    lines = _lines_by_product(order_lines)
    slots: dict[tuple[int, int], GridCell] = {}
    conflicts: list[GridConflict] = []

    for distribution in distributions:
        if not distribution.product_id:
            continue
        position = (distribution.row, distribution.col)
        previous = slots.get(position)
        if previous is not None and previous.product_id != distribution.product_id:
            conflict = GridConflict(
                row=distribution.row,
                col=distribution.col,
                kept_product_id=distribution.product_id,
                dropped_product_id=previous.product_id or "",
            )
            logger.warning(
                "Planogram %s cell (%s, %s): product %s replaces %s",
                planogram_id,
                conflict.row,
                conflict.col,
                conflict.kept_product_id,
                conflict.dropped_product_id,
            )
            conflicts.append(conflict)
        slots[position] = _cell_for(
            distribution,
            lines.get(distribution.product_id),
            catalog.get(distribution.product_id),
        )

    cells = tuple(
        slots.get((row, col)) or GridCell(row, col) for row in range(GRID_SIZE) for col in range(GRID_SIZE)
    )
    return PlanogramGrid(cells=cells, conflicts=tuple(conflicts), planogram_id=planogram_id)


class PlanogramGridBuilder:
    def __init__(self, directory: DirectoryCache) -> None:
        self.directory = directory

    def choose_planogram(self, order: Order | None = None, planogram_id: str | None = None) -> str:
        if planogram_id:
            return planogram_id
        planograms: list[Planogram] = [planogram for planogram in self.directory.list_planograms() if planogram.id]
        active = next((planogram for planogram in planograms if planogram.is_active), None)
        if active is not None:
            return active.id
        if order is not None and order.planogram_id:
            return order.planogram_id
        if planograms:
            return planograms[0].id
        raise PlanogramUnavailableError("no planogram is available to lay out the order")

    def build_for_order(self, order: Order | None, planogram_id: str | None = None) -> PlanogramGrid:
        chosen = self.choose_planogram(order, planogram_id)
        distributions = self.directory.distributions(chosen)
        try:
            products = self.directory.list_products()
        except (ApiError, ValueError) as exc:
            logger.warning("Product catalog unavailable for planogram %s: %s", chosen, exc)
            products = []
        lines = [self._priced(line) for line in (order.items if order is not None else [])]
        return build_grid(distributions, lines, products, planogram_id=chosen)

    def _priced(self, line: OrderLine) -> OrderLine:
        if line.price > ZERO or not line.product_id:
            return line
        try:
            history = self.directory.latest_price(line.product_id)
        except (ApiError, ValueError) as exc:
            logger.warning("Latest price for product %s unavailable: %s", line.product_id, exc)
            return line
        if history is None or history.price <= ZERO:
            return line
        return line.model_copy(update={"price": history.price})
