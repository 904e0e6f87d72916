import json

import pytest

from static_metric.cli import main
from static_metric.codegen import compute_dsl_hash

from tests._samples import SCENARIO_A


@pytest.fixture
def dsl_file(tmp_path):
    p = tmp_path / 'http.dsl'
    p.write_text(SCENARIO_A, encoding='utf-8')
    return p


def test_generate_to_file_json(dsl_file, tmp_path, capsys):
    out = tmp_path / 'gen' / 'http_metrics.py'
    catalog = tmp_path / 'CATALOG.md'
    rc = main([str(dsl_file), '-o', str(out), '--auto-flush', '--flush-interval', '0.5',
               '--catalog', str(catalog), '--json'])
    assert rc == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload['status'] == 'ok'
    assert payload['dsl_hash'] == compute_dsl_hash(SCENARIO_A)
    src = out.read_text(encoding='utf-8')
    assert 'FLUSH_INTERVAL = 0.5' in src
    assert '### Lhrs' in catalog.read_text(encoding='utf-8')


def test_generate_to_stdout(dsl_file, capsys):
    assert main([str(dsl_file)]) == 0
    out = capsys.readouterr().out
    assert out.startswith('# Auto-generated file')
    assert 'class LhrsInner:' in out


def test_check_mode(dsl_file, tmp_path, capsys):
    out = tmp_path / 'm.py'
    assert main([str(dsl_file), '-o', str(out), '--check', '--json']) == 1
    assert json.loads(capsys.readouterr().out)['status'] == 'stale'
    assert main([str(dsl_file), '-o', str(out)]) == 0
    capsys.readouterr()
    assert main([str(dsl_file), '-o', str(out), '--check', '--json']) == 0
    assert json.loads(capsys.readouterr().out)['status'] == 'ok'


def test_check_requires_output(dsl_file):
    with pytest.raises(SystemExit) as ei:
        main([str(dsl_file), '--check'])
    assert ei.value.code == 2


def test_generation_error_exit_code(tmp_path, capsys):
    bad = tmp_path / 'bad.dsl'
    bad.write_text('pub struct S: Counter { "k" => E }', encoding='utf-8')
    out = tmp_path / 'out.py'
    assert main([str(bad), '-o', str(out), '--json']) == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload['status'] == 'error'
    assert 'Label enum `E` is undefined.' in payload['error']
    assert not out.exists()


def test_auto_flush_rejects_shared_kind(tmp_path, capsys):
    p = tmp_path / 'shared.dsl'
    p.write_text('struct S: Counter { "k" => {a} }', encoding='utf-8')
    assert main([str(p), '--auto-flush']) == 1
    assert 'cannot auto-flush' in capsys.readouterr().err


def test_missing_input_and_bad_config(tmp_path, dsl_file, capsys):
    assert main([str(tmp_path / 'nope.dsl'), '--json']) == 1
    assert json.loads(capsys.readouterr().out)['status'] == 'error'
    cfg = tmp_path / 'gen.yml'
    cfg.write_text('flush_interval: -2\n', encoding='utf-8')
    assert main([str(dsl_file), '--config', str(cfg), '--json']) == 1
    assert 'flush_interval' in json.loads(capsys.readouterr().out)['error']


def test_config_file_and_no_case_fold(tmp_path, capsys):
    p = tmp_path / 'upper.dsl'
    p.write_text('struct S: Counter { "k" => { Foo } }', encoding='utf-8')
    cfg = tmp_path / 'gen.yml'
    cfg.write_text('export_inner: false\n', encoding='utf-8')
    assert main([str(p), '--config', str(cfg), '--no-case-fold']) == 0
    out = capsys.readouterr().out
    assert "'Foo': 'Foo'" in out
    assert 'SInner = ' not in out


def test_unwritable_catalog_reports_error(dsl_file, tmp_path, capsys):
    out = tmp_path / 'm.py'
    catalog = tmp_path / 'missing-dir' / 'CATALOG.md'
    assert main([str(dsl_file), '-o', str(out), '--catalog', str(catalog), '--json']) == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload['status'] == 'error'
    assert 'CATALOG.md' in payload['error']


def test_invalid_label_key_exit_code(tmp_path, capsys):
    p = tmp_path / 'bad.dsl'
    p.write_text('struct S: Counter { "my-key" => {a} }', encoding='utf-8')
    assert main([str(p), '--json']) == 1
    assert 'not a valid label name' in json.loads(capsys.readouterr().out)['error']
