"""Tests for the payroll command line interface."""

import json
from dataclasses import replace

import pytest

from chile_payroll.cli import PayrollCli, main
from chile_payroll.config import get_settings


@pytest.fixture
def cli(cli_settings):
    return PayrollCli(cli_settings)


@pytest.fixture
def request_file(tmp_path):
    def _write(**overrides):
        data = {
            "employee": {
                "id": "emp-001",
                "rut": "12.345.678-5",
                "first_name": "Ana",
                "last_name": "Pérez",
                "base_salary": 1000000,
                "contract_type": "indefinido",
                "afp_code": "HABITAT",
            },
            "period_year": 2025,
            "period_month": 8,
        }
        data.update(overrides)
        path = tmp_path / "request.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def settings_file(tmp_path, company_settings):
    path = tmp_path / "company.json"
    path.write_text(json.dumps(company_settings), encoding="utf-8")
    return str(path)


class TestCalculateCommand:
    """Test the calculate command."""

    def test_prints_slip(self, cli, request_file, capsys):
        exit_code = cli.run(["calculate", "--request", request_file()])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Liquidación Agosto 2025" in out
        assert "Ana Pérez (12.345.678-5)" in out
        # 1,000,000 - (100,000 + 12,700 + 18,800 + 70,000 + 6,000 + 4,149)
        assert "Líquido a pagar" in out
        assert "$788.351" in out

    def test_json_output(self, cli, request_file, capsys):
        exit_code = cli.run(["calculate", "--request", request_file(days_worked=15), "--json"])

        data = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert data["base_salary"] == 500000
        assert data["input_warnings"] == ["Partial period: only 15 days worked"]
        assert data["employee"]["afp_code"] == "HABITAT"
        assert data["calculation_id"]

    def test_utm_override(self, cli, request_file, capsys):
        cli.run(["calculate", "--request", request_file(), "--utm", "80000", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert data["income_tax_amount"] == 0

    def test_company_settings(self, cli, request_file, settings_file, capsys):
        path = request_file()
        exit_code = cli.run(["calculate", "--request", path, "--settings", settings_file, "--json"])

        data = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert data["afp_commission_percentage"] == "1.27"

    def test_settings_file_from_environment(self, cli_settings, request_file, settings_file, capsys):
        """Inactive funds from the configured settings file are unknown."""
        cli = PayrollCli(replace(cli_settings, settings_file=settings_file))
        employee = {
            "id": "emp-2",
            "rut": "2-7",
            "first_name": "Rosa",
            "last_name": "Díaz",
            "base_salary": 700000,
            "afp_code": "UNO",
        }

        exit_code = cli.run(
            ["calculate", "--request", request_file(employee=employee), "--unknown-fund", "error"]
        )

        assert exit_code == 1
        assert "Unknown pension fund code 'UNO'" in capsys.readouterr().err

    def test_unknown_fund_warning(self, cli, request_file, capsys):
        employee = {
            "id": "emp-9",
            "rut": "1-9",
            "first_name": "Luis",
            "last_name": "Rojas",
            "base_salary": 600000,
            "afp_code": "NOPE",
        }
        exit_code = cli.run(
            ["calculate", "--request", request_file(employee=employee), "--unknown-fund", "warn"]
        )

        assert exit_code == 0
        assert "! Unknown pension fund 'NOPE'" in capsys.readouterr().out

    def test_invalid_unknown_fund_setting(self, cli_settings, request_file, capsys):
        cli = PayrollCli(replace(cli_settings, unknown_fund_policy="strict"))

        exit_code = cli.run(["calculate", "--request", request_file()])

        assert exit_code == 1
        assert "got 'strict'" in capsys.readouterr().err

    def test_invalid_input(self, cli, request_file, capsys):
        exit_code = cli.run(["calculate", "--request", request_file(days_worked=0)])

        assert exit_code == 1
        assert "Days worked must be greater than 0" in capsys.readouterr().err

    def test_year_out_of_range(self, cli, request_file, capsys):
        exit_code = cli.run(["calculate", "--request", request_file(period_year=2040)])

        assert exit_code == 1
        assert "Year must be between 2020 and 2030" in capsys.readouterr().err

    def test_invalid_payload(self, cli, request_file, capsys):
        exit_code = cli.run(["calculate", "--request", request_file(period_month="agosto")])

        assert exit_code == 1
        assert "invalid payload" in capsys.readouterr().err

    def test_missing_file(self, cli, tmp_path, capsys):
        exit_code = cli.run(["calculate", "--request", str(tmp_path / "missing.json")])

        assert exit_code == 1
        assert capsys.readouterr().err.startswith("ERROR:")

    def test_malformed_json(self, cli, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        assert cli.run(["calculate", "--request", str(path)]) == 1
        assert "ERROR:" in capsys.readouterr().err

    def test_bad_decimal_argument(self, cli, request_file):
        with pytest.raises(SystemExit):
            cli.run(["calculate", "--request", request_file(), "--uf", "abc"])


class TestOtherCommands:
    """Test defaults and gratification-cap."""

    def test_defaults(self, cli, capsys):
        assert cli.run(["defaults"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["taxable_income_cap"] == "3152520"
        assert data["tax_exempt_threshold"] == "896279"
        assert len(data["pension_funds"]) == 7

    def test_defaults_with_company_settings(self, cli, settings_file, capsys):
        assert cli.run(["defaults", "--settings", settings_file]) == 0

        data = json.loads(capsys.readouterr().out)
        assert [f["code"] for f in data["pension_funds"]] == ["CAPITAL", "HABITAT", "MODELO"]

    def test_gratification_cap(self, cli, capsys):
        assert cli.run(["gratification-cap"]) == 0
        assert capsys.readouterr().out.strip() == "$209.396"

    def test_gratification_cap_override(self, cli, capsys):
        assert cli.run(["gratification-cap", "--minimum-wage", "500000"]) == 0
        assert capsys.readouterr().out.strip() == "$197.917"

    def test_no_command(self, cli, capsys):
        assert cli.run([]) == 1
        assert "usage" in capsys.readouterr().out


class TestMain:
    """Test the entry point's handling of environment settings."""

    @pytest.mark.parametrize(
        "name,value",
        [
            ("PAYROLL_UNKNOWN_FUND_POLICY", "strict"),
            ("PAYROLL_UF_VALUE", "treinta mil"),
            ("PAYROLL_MAX_YEAR", "2030.5"),
        ],
    )
    def test_bad_environment_setting(self, monkeypatch, capsys, name, value):
        monkeypatch.setenv(name, value)
        get_settings.cache_clear()
        try:
            exit_code = main(["defaults"])
        finally:
            get_settings.cache_clear()

        assert exit_code == 1
        assert name in capsys.readouterr().err
