import os
import sys
import json
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))
import Program
from render.renderers import RENDERER_REGISTRY
from tax.FederalDetails import FederalDetails


def _sample_spec():
    spec_path = os.path.join(os.path.dirname(__file__), '../input-parameters/sample/spec.json')
    with open(spec_path, 'r') as f:
        return json.load(f)


def test_every_mode_has_a_report_builder():
    assert set(Program.REPORT_BUILDERS) == set(RENDERER_REGISTRY)


@pytest.mark.parametrize("mode", sorted(RENDERER_REGISTRY))
def test_sample_program_renders_every_mode(mode, capsys):
    assert Program.run('sample', mode) == 0
    out = capsys.readouterr().out
    assert "=" * 60 in out


def test_liability_report_for_sample():
    spec = _sample_spec()
    fed = FederalDetails(spec.get('federalBracketInflation'), spec.get('lastPlanningYear'))
    report = Program.build_liability(spec, fed)
    assert report['input'].ordinary_income == 400000
    assert report['result'].amt_applies
    assert report['marginal_rate'] == pytest.approx(0.35)


def test_vest_calendar_orders_events():
    spec = _sample_spec()
    report = Program.build_vest_calendar(spec, FederalDetails())
    dates = [p.event.date for p in report['projections']]
    assert dates == sorted(dates)
    # the sample's ISO spread already puts the filer into AMT
    assert report['amt_safe_spread'] == 0


def test_vest_calendar_compares_options_and_concentration():
    report = Program.build_vest_calendar(_sample_spec(), FederalDetails())
    assert report['iso_vs_nso'].iso_spread == pytest.approx(400 * 130)
    assert report['iso_vs_nso'].nso_spread == pytest.approx(500 * 115)
    assert report['concentration'].risk_level == 'medium'


def test_rent_vs_buy_horizon_must_be_whole_years(monkeypatch, capsys):
    spec = _sample_spec()
    spec['home']['comparisonYears'] = -5
    monkeypatch.setattr(Program, 'load_spec', lambda name: spec)
    assert Program.run('broken', 'Homebuyer') == 1
    assert "Not enough information yet" in capsys.readouterr().out


def test_missing_program(capsys):
    assert Program.run('no-such-program', 'Liability') == 1
    assert "Spec file not found" in capsys.readouterr().out


def test_calculation_error_is_reported(monkeypatch, capsys):
    monkeypatch.setattr(Program, 'load_spec', lambda name: {"taxYear": 2024, "income": {"ordinary": -5}})
    assert Program.run('broken', 'Liability') == 1
    assert "Not enough information yet" in capsys.readouterr().out


def test_unknown_filing_status_is_reported(monkeypatch, capsys):
    monkeypatch.setattr(Program, 'load_spec', lambda name: {"taxYear": 2024, "filingStatus": "hoh"})
    assert Program.run('broken', 'Roth') == 1
    assert "Not enough information yet" in capsys.readouterr().out
