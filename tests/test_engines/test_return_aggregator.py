"""Tests for return-level federal and state calculation."""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

import pytest

from taxreturn.engines.return_aggregator import ReturnAggregator, deduction_amount
from taxreturn.exceptions import ConfigNotFoundError, RecordNotFoundError
from taxreturn.models.enums import FilingStatus, ReturnStatus
from taxreturn.models.tax_forms import Form1099B, Form1099BEntry, Form1099Div, Form1099Int, W2Data
from taxreturn.models.tax_return import TaxpayerProfile, TaxReturn


@pytest.fixture
def aggregator(repo, config) -> ReturnAggregator:
    return ReturnAggregator(repo, config)


def _w2(tax_return_id: str, **kwargs) -> W2Data:
    values = {
        "tax_return_id": tax_return_id,
        "employer_name": "Acme Corp",
        "wages": Decimal("60000.00"),
        "federal_withheld": Decimal("8000.00"),
        "state": "CA",
        "state_withheld": Decimal("2500.00"),
    }
    values.update(kwargs)
    return W2Data(**values)


def _lots(repo, tax_return_id: str, *gains: tuple[str, str, bool], **form_kwargs) -> None:
    form = Form1099B(tax_return_id=tax_return_id, payer_name="Broker", **form_kwargs)
    entries = [
        Form1099BEntry(
            form_1099b_id=form.id,
            description=f"lot {i}",
            date_acquired=date(2024, 1, 2),
            date_sold=date(2024, 6, 3),
            proceeds=Decimal(proceeds),
            cost_basis=Decimal(basis),
            is_short_term=short,
        )
        for i, (proceeds, basis, short) in enumerate(gains)
    ]
    repo.save_1099b(form, entries)


class TestWagesOnly:
    def test_single_filer(self, repo, aggregator, tax_return):
        repo.save_w2(_w2(tax_return.id))

        result = aggregator.calculate(tax_return.id, states=[])

        f = result.form1040
        assert f.total_income == Decimal("60000.00")
        assert f.standard_deduction == Decimal("14600.00")
        assert f.taxable_income == Decimal("45400.00")
        assert f.tax == Decimal("5216.00")
        assert f.refund_or_owed == Decimal("2784.00")
        assert result.tax_return.status == ReturnStatus.IN_PROGRESS
        assert result.tax_return.calculated_at is not None

    def test_persists_snapshot(self, repo, aggregator, tax_return):
        repo.save_w2(_w2(tax_return.id))
        aggregator.calculate(tax_return.id, states=[])

        stored = repo.get_tax_return(tax_return.id)
        assert stored.total_tax == Decimal("5216.00")
        assert stored.refund_or_owed == Decimal("2784.00")
        assert repo.get_form1040(tax_return.id).taxable_income == Decimal("45400.00")

    def test_idempotent(self, repo, aggregator, tax_return):
        repo.save_w2(_w2(tax_return.id))
        first = aggregator.calculate(tax_return.id)
        second = aggregator.calculate(tax_return.id)
        assert first.form1040 == second.form1040
        assert first.state_returns == second.state_returns

    def test_no_w2_warns(self, aggregator, tax_return):
        result = aggregator.calculate(tax_return.id, states=[])
        assert result.form1040.tax == Decimal("0.00")
        assert any("No W-2" in w for w in result.warnings)

    def test_owed_is_negative(self, repo, aggregator, tax_return):
        repo.save_w2(_w2(tax_return.id, federal_withheld=Decimal("1000.00")))
        result = aggregator.calculate(tax_return.id, states=[])
        assert result.form1040.refund_or_owed == Decimal("-4216.00")


class TestAllIncome:
    def test_full_return(self, repo, aggregator, tax_return):
        repo.save_w2(_w2(tax_return.id))
        repo.save_1099int(
            Form1099Int(
                tax_return_id=tax_return.id,
                interest_income=Decimal("1500.00"),
                federal_withheld=Decimal("100.00"),
            )
        )
        repo.save_1099div(
            Form1099Div(
                tax_return_id=tax_return.id,
                ordinary_dividends=Decimal("1234.56"),
                qualified_dividends=Decimal("987.65"),
            )
        )
        _lots(repo, tax_return.id, ("15000", "12000", True), ("5000", "5800", True), ("2000", "1000", False))

        result = aggregator.calculate(tax_return.id)

        f = result.form1040
        assert f.capital_gains == Decimal("3200.00")
        assert f.total_income == Decimal("65934.56")
        assert f.qualified_dividends == Decimal("987.65")
        assert f.taxable_income == Decimal("51334.56")
        assert f.tax == Decimal("6346.60")
        assert f.federal_withheld == Decimal("8100.00")
        assert f.refund_or_owed == Decimal("1753.40")
        assert result.schedule_d.net_short_term_gain_loss == Decimal("2200.00")
        assert result.schedule_d.net_long_term_gain_loss == Decimal("1000.00")
        assert len(result.form8949_rows) == 3

        (ca,) = result.state_returns
        assert ca.state == "CA"
        assert ca.state_income == Decimal("65934.56")
        assert ca.state_taxable_income == Decimal("60394.56")
        assert ca.state_tax == Decimal("2372.96")
        assert ca.state_refund_or_owed == Decimal("127.04")
        assert ca.marginal_rate == Decimal("0.0800")


class TestCapitalLoss:
    def test_loss_limited_with_carryforward(self, repo, aggregator, tax_return):
        repo.save_w2(_w2(tax_return.id))
        _lots(repo, tax_return.id, ("1000", "11000", True))

        result = aggregator.calculate(tax_return.id, states=[])

        assert result.schedule_d.total_gain_loss == Decimal("-10000.00")
        assert result.form1040.capital_gains == Decimal("-3000.00")
        assert result.form1040.capital_loss_carryforward == Decimal("7000.00")
        assert result.form1040.total_income == Decimal("57000.00")
        assert any("carries forward" in w for w in result.warnings)

    def test_married_separate_limit(self, repo, aggregator, tax_return):
        _lots(repo, tax_return.id, ("0", "5000", True))
        result = aggregator.calculate(tax_return.id, filing_status=FilingStatus.MARRIED_SEPARATE, states=[])
        assert result.form1040.capital_gains == Decimal("-1500.00")
        assert result.tax_return.filing_status == FilingStatus.MARRIED_SEPARATE


class TestCrossCheck:
    def test_broker_subtotal_mismatch_warns(self, repo, aggregator, tax_return):
        _lots(repo, tax_return.id, ("3000", "1000", True), short_term_gain_loss=Decimal("1999.00"))
        result = aggregator.calculate(tax_return.id, states=[])
        assert result.form1040.capital_gains == Decimal("2000.00")
        assert any("does not match" in w for w in result.warnings)

    def test_matching_subtotal_is_silent(self, repo, aggregator, tax_return):
        _lots(repo, tax_return.id, ("3000", "1000", True), short_term_gain_loss=Decimal("2000.00"))
        result = aggregator.calculate(tax_return.id, states=[])
        assert not any("does not match" in w for w in result.warnings)

    def test_flagged_rows_put_return_in_review(self, repo, aggregator, tax_return):
        form = Form1099B(tax_return_id=tax_return.id)
        repo.save_1099b(form, [Form1099BEntry(form_1099b_id=form.id, description="mystery")])
        result = aggregator.calculate(tax_return.id, states=[])
        assert result.tax_return.status == ReturnStatus.REVIEW
        assert result.form8949_rows[0].excluded


class TestStates:
    def test_states_from_w2_and_residence(self, repo, aggregator, tax_return):
        repo.save_w2(_w2(tax_return.id, state="TX", state_withheld=None))
        result = aggregator.calculate(tax_return.id)
        assert [s.state for s in result.state_returns] == ["CA", "TX"]

    def test_income_tax_free_state(self, repo, aggregator, tax_return):
        repo.save_w2(_w2(tax_return.id, state="WA", state_withheld=Decimal("10.00")))
        result = aggregator.calculate(tax_return.id, states=["wa"])
        (wa,) = result.state_returns
        assert not wa.has_income_tax
        assert wa.state_tax == Decimal("0.00")
        assert wa.state_refund_or_owed == Decimal("10.00")

    def test_state_without_tables_raises(self, repo, aggregator, tax_return):
        repo.save_w2(_w2(tax_return.id))
        with pytest.raises(ConfigNotFoundError):
            aggregator.calculate(tax_return.id, states=["OR"])
        assert repo.get_form1040(tax_return.id) is None


    def test_new_york_return(self, repo, aggregator, tax_return):
        repo.save_w2(_w2(tax_return.id, state="NY", state_withheld=Decimal("3000.00")))
        result = aggregator.calculate(tax_return.id, states=["NY"])
        (ny,) = result.state_returns
        assert ny.state_deduction == Decimal("8000.00")
        assert ny.state_taxable_income == Decimal("52000.00")
        assert ny.state_tax == Decimal("2695.00")
        assert ny.state_refund_or_owed == Decimal("305.00")
        assert ny.marginal_rate == Decimal("0.055")



class TestConfigGaps:
    def test_unknown_return(self, aggregator):
        with pytest.raises(RecordNotFoundError):
            aggregator.calculate("missing")

    def test_year_without_tables(self, repo, aggregator):
        tax_return = repo.create_tax_return(TaxReturn(tax_year=2019))
        with pytest.raises(ConfigNotFoundError) as exc_info:
            aggregator.calculate(tax_return.id)
        assert exc_info.value.year == 2019
        assert repo.get_tax_return(tax_return.id).calculated_at is None


class TestOtherYears:
    def test_2023_return(self, repo, aggregator, load_year):
        load_year(2023)
        tax_return = repo.create_tax_return(TaxReturn(tax_year=2023))
        repo.save_w2(_w2(tax_return.id))

        result = aggregator.calculate(tax_return.id, states=["CA"])

        f = result.form1040
        assert f.standard_deduction == Decimal("13850.00")
        assert f.taxable_income == Decimal("46150.00")
        assert f.tax == Decimal("5460.50")
        assert f.refund_or_owed == Decimal("2539.50")
        (ca,) = result.state_returns
        assert ca.state_deduction == Decimal("5363.00")
        assert ca.state_tax == Decimal("1986.27")


class TestSocialSecurityCheck:
    def test_maximum_for_year_is_silent(self, repo, aggregator, load_year):
        load_year(2025)
        tax_return = repo.create_tax_return(TaxReturn(tax_year=2025))
        repo.save_w2(_w2(tax_return.id, social_security_withheld=Decimal("10918.20")))

        result = aggregator.calculate(tax_return.id, states=[])

        assert not any("social security" in w for w in result.warnings)

    def test_above_maximum_warns(self, repo, aggregator, load_year):
        load_year(2025)
        tax_return = repo.create_tax_return(TaxReturn(tax_year=2025))
        repo.save_w2(_w2(tax_return.id, social_security_withheld=Decimal("10918.21")))

        result = aggregator.calculate(tax_return.id, states=[])

        (warning,) = [w for w in result.warnings if "social security" in w]
        assert "Acme Corp" in warning
        assert "$10,918.20" in warning

    def test_limit_follows_tax_year(self, repo, aggregator, tax_return):
        # Allowed in 2025 but above the 2024 maximum of $10,453.20
        repo.save_w2(_w2(tax_return.id, social_security_withheld=Decimal("10918.20")))
        result = aggregator.calculate(tax_return.id, states=[])
        assert any("2024 maximum social security tax of $10,453.20" in w for w in result.warnings)


class TestReturnLocks:
    def test_lock_released_after_calculation(self, repo, aggregator, tax_return):
        repo.save_w2(_w2(tax_return.id))
        aggregator.calculate(tax_return.id, states=[])
        assert aggregator._locks == {}

    def test_lock_released_after_failure(self, aggregator):
        with pytest.raises(RecordNotFoundError):
            aggregator.calculate("missing")
        assert aggregator._locks == {}

    def test_concurrent_calculations_share_lock(self, repo, aggregator, tax_return):
        repo.save_w2(_w2(tax_return.id))
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: aggregator.calculate(tax_return.id, states=[]), range(8)))
        assert {r.form1040.tax for r in results} == {Decimal("5216.00")}
        assert aggregator._locks == {}


class TestDeductionAmount:
    def test_blind_addition(self, config):
        deduction = config.get_standard_deduction(2024, FilingStatus.SINGLE)
        profile = TaxpayerProfile(is_blind=True)
        assert deduction_amount(deduction, profile, FilingStatus.SINGLE) == Decimal("16550.00")

    def test_spouse_counts_only_when_joint(self, config):
        profile = TaxpayerProfile(is_blind=True, spouse_is_blind=True)
        joint = config.get_standard_deduction(2024, FilingStatus.MARRIED_JOINT)
        separate = config.get_standard_deduction(2024, FilingStatus.MARRIED_SEPARATE)
        assert deduction_amount(joint, profile, FilingStatus.MARRIED_JOINT) == Decimal("32300.00")
        assert deduction_amount(separate, profile, FilingStatus.MARRIED_SEPARATE) == Decimal("16150.00")
