"""Tests for the eight-block position cost chain."""

from decimal import Decimal

import pytest

from commission_engine.models.budget_models import (
    BdiParameters,
    BenefitRates,
    City,
    JobRole,
    MaterialItem,
    PositionInput,
    SalaryAddition,
    SocialCharge,
    UniformItem,
    WorkScale,
)
from commission_engine.models.enums import SalaryAdditionBase, Shift
from commission_engine.services.position_cost import (
    add_material,
    budget_total,
    calculate_bdi_block,
    calculate_benefits_block,
    calculate_intrajornada_block,
    calculate_materials_block,
    calculate_position,
    calculate_salary_block,
    calculate_social_charges_block,
    calculate_uniforms_block,
    remove_material,
    update_material,
)
from commission_engine.utils.math_utils import round_currency


def _inputs(**overrides) -> PositionInput:
    values = dict(
        job_role=JobRole(id="r1", role_name="Vigilante", salary_base=Decimal("2000")),
        work_scale=WorkScale(id="s1", scale_name="12x36", people_quantity=2, working_days=15),
        shift=Shift.DIURNO,
        city=City(id="c1", city_name="Curitiba", iss_percent=Decimal("5")),
        social_charges=[SocialCharge(charge_name="INSS", percentage=Decimal("0.2"))],
        materials=[MaterialItem(name="Lanterna", unit_value=Decimal("80"), quantity=Decimal("2"))],
        uniforms=[
            UniformItem(
                item_name="Camisa",
                unit_value=Decimal("60"),
                qty_per_collaborator=Decimal("2"),
                life_time_months=Decimal("6"),
            )
        ],
    )
    values.update(overrides)
    return PositionInput(**values)


class TestSalaryBlock:
    def test_night_shift_premiums(self) -> None:
        block = calculate_salary_block(
            Decimal("1412"), Decimal("1"), Decimal("21"), Shift.NOTURNO
        )
        assert round_currency(block.night_differential) == Decimal("215.65")
        assert round_currency(block.night_hour_premium) == Decimal("161.74")
        assert block.total == (
            block.base_salary_total + block.night_differential + block.night_hour_premium
        )

    def test_day_shift_has_no_night_premiums(self) -> None:
        block = calculate_salary_block(Decimal("1412"), Decimal("3"), Decimal("21"), Shift.DIURNO)
        assert block.night_differential == 0
        assert block.night_hour_premium == 0
        assert block.total == Decimal("4236")

    def test_additions_by_base(self) -> None:
        additions = [
            SalaryAddition(name="Insalubridade", calculationBase="salario_minimo", percentage=Decimal("40")),
            SalaryAddition(name="Periculosidade", calculation_base=SalaryAdditionBase.SALARIO_BASE, percentage=Decimal("30")),
            SalaryAddition(name="Gratificação", calculation_base=SalaryAdditionBase.VALOR_FIXO, fixedValue=Decimal("100")),
        ]
        block = calculate_salary_block(
            Decimal("2000"), Decimal("2"), Decimal("21"), Shift.DIURNO, additions
        )
        # 1412 × 40% × 2 + 2000 × 30% × 2 + 100 × 2
        assert block.salary_additions_total == Decimal("1129.6") + Decimal("1200") + Decimal("200")


class TestOtherBlocks:
    def test_social_charges_apply_fractions(self) -> None:
        block = calculate_social_charges_block(
            Decimal("1000"),
            [
                SocialCharge(charge_name="INSS", percentage=Decimal("0.2")),
                SocialCharge(charge_name="FGTS", percentage=Decimal("0.08")),
            ],
        )
        assert block.charges == {"INSS": Decimal("200"), "FGTS": Decimal("80")}
        assert block.total == Decimal("280")

    def test_benefits(self) -> None:
        block = calculate_benefits_block(BenefitRates(), Decimal("21"), Decimal("2"))
        assert block.vt_total == Decimal("285.6")
        assert block.total == Decimal("2805.6")

    def test_materials(self) -> None:
        block = calculate_materials_block(
            [
                MaterialItem(name="Rádio", unit_value=Decimal("150"), quantity=Decimal("2")),
                MaterialItem(name="Apito", unit_value=Decimal("5.5")),
            ]
        )
        assert block.line_totals == [Decimal("300"), Decimal("5.5")]
        assert block.total == Decimal("305.5")

    def test_uniforms_amortized_per_head(self) -> None:
        block = calculate_uniforms_block(
            [UniformItem(item_name="Calça", unit_value=Decimal("120"), qty_per_employee=Decimal("2"), useful_life=Decimal("12"))],
            Decimal("3"),
        )
        assert block.total == Decimal("60")

    def test_uniform_without_useful_life_costs_nothing(self) -> None:
        block = calculate_uniforms_block(
            [UniformItem(item_name="Bota", unit_value=Decimal("200"), useful_life=Decimal("0"))],
            Decimal("1"),
        )
        assert block.total == 0

    def test_intrajornada(self) -> None:
        assert calculate_intrajornada_block(False, Decimal("2200"), Decimal("2")).total == 0
        assert calculate_intrajornada_block(True, Decimal("2200"), Decimal("2")).total == Decimal("30")

    def test_bdi_example(self) -> None:
        block = calculate_bdi_block(Decimal("10000"), BdiParameters(), Decimal("5"))
        assert block.rate_total == Decimal("27.90")
        assert block.total == Decimal("2790")
        assert block.profit_value == Decimal("1500")
        assert block.iss_value == Decimal("500")


class TestCalculatePosition:
    def test_incomplete_until_all_selections(self) -> None:
        result = calculate_position(_inputs(city=None, shift=None))
        assert not result.is_complete
        assert result.missing == ["shift", "city"]
        assert result.final_total is None
        assert result.salary is None

    def test_final_is_subtotal_plus_bdi(self) -> None:
        result = calculate_position(_inputs())
        assert result.is_complete
        assert result.subtotal_without_bdi == sum(
            (
                result.salary.total,
                result.social_charges.total,
                result.benefits.total,
                result.materials.total,
                result.uniforms.total,
                result.intrajornada.total,
            ),
            Decimal("0"),
        )
        assert result.final_total == result.subtotal_without_bdi + result.bdi.total

    def test_known_position(self) -> None:
        result = calculate_position(_inputs())
        # salary 4000, charges 800, benefits 66.8 × 15 × 2, materials 160, uniforms 40
        assert result.salary.total == Decimal("4000")
        assert result.social_charges.total == Decimal("800")
        assert result.benefits.total == Decimal("2004")
        assert result.materials.total == Decimal("160")
        assert result.uniforms.total == Decimal("40")
        assert result.subtotal_without_bdi == Decimal("7004")
        assert round_currency(result.final_total) == Decimal("8958.12")

    def test_higher_profit_margin_never_lowers_the_total(self) -> None:
        totals = [
            calculate_position(_inputs(bdi=BdiParameters(profit_margin=Decimal(m)))).final_total
            for m in ("0", "10", "15", "30")
        ]
        assert totals == sorted(totals)

    def test_negative_margin_is_zeroed_unless_strict(self) -> None:
        inputs = _inputs(bdi=BdiParameters(profit_margin=Decimal("-5")))
        assert calculate_position(inputs).bdi.profit_value == 0
        with pytest.raises(ValueError, match="profit_margin"):
            calculate_position(inputs, strict=True)

    def test_negative_rows_never_lower_the_total(self) -> None:
        baseline = calculate_position(_inputs(materials=[], uniforms=[]))
        result = calculate_position(
            _inputs(
                materials=[MaterialItem(name="Rádio", unit_value=Decimal("-500"), quantity=Decimal("2"))],
                uniforms=[UniformItem(item_name="Camisa", unit_value=Decimal("100"), useful_life=Decimal("-2"))],
            )
        )
        assert result.materials.total == 0
        assert result.uniforms.total == 0
        assert result.final_total == baseline.final_total

    @pytest.mark.parametrize(
        "overrides, field",
        [
            ({"materials": [MaterialItem(unit_value=Decimal("-500"), quantity=Decimal("2"))]}, "unit_value"),
            ({"materials": [MaterialItem(unit_value=Decimal("10"), quantity=Decimal("-1"))]}, "quantity"),
            ({"uniforms": [UniformItem(unit_value=Decimal("100"), useful_life=Decimal("-2"))]}, "useful_life"),
            ({"uniforms": [UniformItem(unit_value=Decimal("100"), qty_per_employee=Decimal("-1"))]}, "qty_per_employee"),
            ({"benefits": BenefitRates(vt=Decimal("-1"))}, "vt"),
        ],
    )
    def test_strict_mode_rejects_negative_rows(self, overrides, field) -> None:
        with pytest.raises(ValueError, match=field):
            calculate_position(_inputs(**overrides), strict=True)

    def test_negative_percentages_are_zeroed(self) -> None:
        result = calculate_position(
            _inputs(
                salary_additions=[
                    SalaryAddition(
                        name="Insalubridade",
                        calculation_base=SalaryAdditionBase.SALARIO_BASE,
                        percentage=Decimal("-10"),
                    )
                ],
                social_charges=[SocialCharge(charge_name="INSS", percentage=Decimal("-0.2"))],
            )
        )
        assert result.salary.salary_additions_total == 0
        assert result.salary.total == Decimal("4000")
        assert result.social_charges.charges == {"INSS": Decimal("0")}
        assert result.social_charges.total == 0

    def test_strict_mode_rejects_negative_charge(self) -> None:
        inputs = _inputs(social_charges=[SocialCharge(charge_name="INSS", percentage=Decimal("-0.2"))])
        with pytest.raises(ValueError, match="percentage must not be negative"):
            calculate_position(inputs, strict=True)

    def test_empty_scale_uses_form_defaults(self) -> None:
        result = calculate_position(
            _inputs(work_scale=WorkScale(id="s0", people_quantity=0, working_days=0))
        )
        assert result.benefits.total == Decimal("66.8") * 21

    def test_budget_total_skips_incomplete_positions(self) -> None:
        complete = calculate_position(_inputs())
        incomplete = calculate_position(_inputs(job_role=None))
        assert budget_total([complete, incomplete, complete]) == complete.final_total * 2


class TestMaterialRows:
    def test_add_returns_new_list(self) -> None:
        rows: list[MaterialItem] = []
        updated = add_material(rows, "Cone", "12.50", 4)
        assert rows == []
        assert updated[0].unit_value == Decimal("12.50")
        assert calculate_materials_block(updated).total == Decimal("50")

    def test_invalid_input_becomes_zero(self) -> None:
        updated = add_material([], "Cone", "abc", -3)
        assert updated[0].unit_value == 0
        assert updated[0].quantity == 0

    def test_strict_mode_raises(self) -> None:
        with pytest.raises(ValueError):
            add_material([], "Cone", "abc", strict=True)

    def test_update_and_remove(self) -> None:
        rows = add_material(add_material([], "A", 10), "B", 20)
        edited = update_material(rows, 1, quantity=3)
        assert edited[1].name == "B"
        assert edited[1].quantity == Decimal("3")
        assert rows[1].quantity == Decimal("1")

        remaining = remove_material(edited, 0)
        assert [r.name for r in remaining] == ["B"]
        with pytest.raises(IndexError):
            remove_material(remaining, 5)
