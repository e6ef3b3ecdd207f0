"""
Tests for input validation.

Every validator must reject bad input with a typed error before any store
call happens; these tests only exercise the pure functions.
"""

from datetime import date
from decimal import Decimal

import pytest

from inventory_kernel.domain.procurement import RequisitionPriority, SupplierStatus
from inventory_kernel.domain.validation import (
    validate_item_patch,
    validate_new_item,
    validate_new_purchase_order,
    validate_new_requisition,
    validate_order_lines,
    validate_priority,
    validate_requisition_lines,
    validate_stock_delta,
    validate_stock_level,
    validate_supplier,
)
from inventory_kernel.exceptions import (
    InvalidFieldError,
    InvalidQuantityError,
    MissingFieldError,
    NegativeStockError,
    ValidationError,
)
from tests.conftest import make_item


class TestNewItem:

    def test_minimal_item_gets_defaults(self):
        data = validate_new_item({"name": " Bath Towel ", "category": "Linen", "unit_price": "450"})
        assert data["name"] == "Bath Towel"
        assert data["unit_price"] == Decimal("450")
        assert data["current_stock"] == 0
        assert data["reorder_level"] == 0
        assert data["unit"] == "pieces"
        assert data["last_restocked"] is None

    @pytest.mark.parametrize("missing", ["name", "category", "unit_price"])
    def test_required_fields(self, missing):
        data = {"name": "Soap", "category": "Toiletries", "unit_price": "10"}
        del data[missing]
        with pytest.raises(MissingFieldError) as exc_info:
            validate_new_item(data)
        assert exc_info.value.field_name == missing

    def test_blank_name_is_missing(self):
        with pytest.raises(MissingFieldError):
            validate_new_item({"name": "   ", "category": "Linen", "unit_price": "1"})

    @pytest.mark.parametrize("price", ["0", "-5", "abc", "Infinity"])
    def test_price_must_be_positive_number(self, price):
        with pytest.raises(InvalidFieldError) as exc_info:
            validate_new_item({"name": "Soap", "category": "Toiletries", "unit_price": price})
        assert exc_info.value.field_name == "unit_price"

    def test_negative_opening_stock_rejected(self):
        with pytest.raises(InvalidFieldError):
            validate_new_item({
                "name": "Soap", "category": "Toiletries", "unit_price": "10", "current_stock": -1,
            })

    def test_unknown_field_rejected(self):
        with pytest.raises(InvalidFieldError) as exc_info:
            validate_new_item({"name": "Soap", "category": "T", "unit_price": "1", "colour": "red"})
        assert exc_info.value.field_name == "colour"

    def test_restock_date_parsed(self):
        data = validate_new_item({
            "name": "Soap", "category": "T", "unit_price": "1", "last_restocked": "2024-09-01",
        })
        assert data["last_restocked"] == date(2024, 9, 1)

    @pytest.mark.parametrize("unit", [None, "", "   "])
    def test_blank_unit_falls_back_to_default(self, unit):
        data = {"name": "Rice", "category": "Kitchen", "unit_price": "60"}
        if unit is not None:
            data["unit"] = unit
        assert validate_new_item(data)["unit"] == "pieces"
        assert validate_new_item(data, default_unit="kg")["unit"] == "kg"

    def test_explicit_unit_kept(self):
        data = {"name": "Rice", "category": "Kitchen", "unit_price": "60", "unit": "sack"}
        assert validate_new_item(data, default_unit="kg")["unit"] == "sack"

    def test_free_text_kept_verbatim(self):
        data = validate_new_item({
            "name": "Bath Towel",
            "category": "Linen",
            "unit_price": "450",
            "description": " white ",
            "location": "  Linen room B",
            "supplier": "Linen Supply Co. ",
        })
        assert data["description"] == " white "
        assert data["location"] == "  Linen room B"
        assert data["supplier"] == "Linen Supply Co. "


class TestItemPatch:

    def test_empty_patch_rejected(self):
        with pytest.raises(InvalidFieldError):
            validate_item_patch({})

    def test_id_not_editable(self):
        with pytest.raises(InvalidFieldError):
            validate_item_patch({"id": "other"})

    def test_partial_patch_keeps_free_text(self):
        assert validate_item_patch({"reorder_level": 20, "location": " B2 "}) == {
            "reorder_level": 20,
            "location": " B2 ",
        }

    def test_blank_unit_resets_to_default(self):
        assert validate_item_patch({"unit": " "}, default_unit="kg") == {"unit": "kg"}

    def test_stock_must_be_integer(self):
        with pytest.raises(InvalidFieldError):
            validate_item_patch({"current_stock": "12"})


class TestStockChecks:

    def test_absolute_level_accepted(self):
        assert validate_stock_level(make_item(current_stock=5), 0) == 0

    def test_negative_level_rejected(self):
        with pytest.raises(NegativeStockError) as exc_info:
            validate_stock_level(make_item(current_stock=5), -1)
        assert exc_info.value.current_stock == 5
        assert exc_info.value.requested_stock == -1

    def test_bool_is_not_a_stock_level(self):
        with pytest.raises(InvalidFieldError):
            validate_stock_level(make_item(), True)

    def test_delta_returns_resulting_stock(self):
        assert validate_stock_delta(make_item(current_stock=50), -5) == 45

    def test_delta_below_zero_rejected_not_clamped(self):
        with pytest.raises(NegativeStockError) as exc_info:
            validate_stock_delta(make_item(current_stock=3), -5)
        assert exc_info.value.requested_stock == -2

    @pytest.mark.parametrize("delta", [0, 1.5, "3", None])
    def test_delta_must_be_nonzero_integer(self, delta):
        with pytest.raises(InvalidQuantityError):
            validate_stock_delta(make_item(), delta)


class TestOrderLines:

    def test_lines_validated(self):
        lines = validate_order_lines([
            {"name": "Towel", "quantity": 2, "unit_price": "100"},
            {"name": "Robe", "quantity": 1, "unit_price": "50"},
        ])
        assert [line.total for line in lines] == [Decimal("200"), Decimal("50")]

    def test_empty_lines_rejected(self):
        with pytest.raises(MissingFieldError):
            validate_order_lines([])

    @pytest.mark.parametrize("quantity", [0, -1, 2.5, None])
    def test_quantity_must_be_positive_integer(self, quantity):
        with pytest.raises(InvalidQuantityError):
            validate_order_lines([{"name": "Towel", "quantity": quantity, "unit_price": "1"}])

    def test_line_must_be_mapping(self):
        with pytest.raises(InvalidFieldError):
            validate_order_lines(["Towel x2"])

    def test_requisition_line_cost_may_be_zero(self):
        (line,) = validate_requisition_lines([{"name": "Mop", "quantity": 1}])
        assert line.estimated_cost == Decimal("0")
        assert line.unit == "pieces"


class TestNewPurchaseOrder:

    def test_supplier_required(self):
        with pytest.raises(MissingFieldError):
            validate_new_purchase_order({"items": [{"name": "a", "quantity": 1, "unit_price": "1"}]})

    def test_normalized_fields(self):
        data = validate_new_purchase_order({
            "supplier": "Linen Supply Co.",
            "items": [{"name": "Towel", "quantity": 2, "unit_price": "100", "total": "1"}],
            "expected_delivery": "2024-10-01",
        })
        assert data["order_number"] is None
        assert data["expected_delivery"] == date(2024, 10, 1)
        assert data["items"][0].total == Decimal("200")

    def test_bad_date_rejected(self):
        with pytest.raises(InvalidFieldError):
            validate_new_purchase_order({
                "supplier": "x",
                "items": [{"name": "a", "quantity": 1, "unit_price": "1"}],
                "order_date": "next tuesday",
            })


class TestNewRequisition:

    def test_priority_defaults_low(self):
        data = validate_new_requisition({
            "department": "Kitchen",
            "requested_by": "Chef",
            "items": [{"name": "Knife", "quantity": 2, "estimated_cost": "900"}],
        })
        assert data["priority"] == RequisitionPriority.LOW

    def test_unknown_priority_rejected(self):
        with pytest.raises(InvalidFieldError):
            validate_priority("critical")

    def test_requested_by_required(self):
        with pytest.raises(MissingFieldError):
            validate_new_requisition({
                "department": "Kitchen",
                "items": [{"name": "Knife", "quantity": 2}],
            })


class TestSupplier:

    def test_defaults(self):
        data = validate_supplier({"name": "Acme"})
        assert data["status"] == SupplierStatus.ACTIVE
        assert data["rating"] == Decimal("0")

    @pytest.mark.parametrize("email", ["acme", "@acme.com", "sales@"])
    def test_email_checked(self, email):
        with pytest.raises(InvalidFieldError):
            validate_supplier({"name": "Acme", "email": email})

    def test_rating_capped(self):
        with pytest.raises(InvalidFieldError):
            validate_supplier({"name": "Acme", "rating": "5.5"})

    def test_all_validation_errors_share_base(self):
        with pytest.raises(ValidationError):
            validate_supplier({"name": ""})
