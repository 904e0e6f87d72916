import sys
from pathlib import Path

import pytest
from prometheus_client import Counter

from static_metric.codegen import (
    GeneratorContext,
    compile_module,
    compute_dsl_hash,
    generate_source,
    is_up_to_date,
    render_catalog,
    write_module,
)
from static_metric.codegen.pipeline import read_module_hash
from static_metric.config import load_config
from static_metric.dsl import parse
from static_metric.utils.exceptions import GenerationError, MetricKindError

from tests._samples import SCENARIO_A, SCENARIO_B


def test_dsl_hash_embedded():
    src = generate_source(SCENARIO_A)
    assert f"DSL_HASH = '{compute_dsl_hash(SCENARIO_A)}'" in src
    assert len(compute_dsl_hash(SCENARIO_A)) == 16


def test_generation_is_deterministic_with_context():
    a = generate_source(SCENARIO_B, auto_flush=True, context=GeneratorContext())
    b = generate_source(SCENARIO_B, auto_flush=True, context=GeneratorContext())
    assert a == b
    ctx = GeneratorContext()
    first = generate_source(SCENARIO_A, context=ctx)
    second = generate_source(SCENARIO_A, context=ctx)
    assert '_static_scope_0' in first and '_static_scope_1' in second


def test_auto_flush_source_shape():
    src = generate_source(SCENARIO_B, auto_flush=True, context=GeneratorContext())
    assert '# Mode: auto-flush (flush_interval=1.0)' in src
    assert 'class LhrsInner(_sm.MayFlush):' in src
    assert 'class Lhrs(LhrsDelegator):' in src
    assert '_sm.LocalHistogramDelegator(slot, offsets + (1,))' in src
    assert '\nLhrs = _static_scope_0.Lhrs\n' in src
    compile(src, 'gen.py', 'exec')


def test_write_module_and_up_to_date(tmp_path):
    out = tmp_path / 'pkg' / 'metrics_gen.py'
    digest = write_module(SCENARIO_A, out, auto_flush=True)
    assert out.exists()
    assert read_module_hash(out) == digest
    assert is_up_to_date(SCENARIO_A, out)
    assert not is_up_to_date(SCENARIO_A + '\n// changed\n', out)
    assert not is_up_to_date(SCENARIO_A, tmp_path / 'missing.py')


def test_nothing_written_on_failure(tmp_path):
    out = tmp_path / 'gen.py'
    with pytest.raises(MetricKindError):
        write_module('struct S: Counter { "k" => {a} }', out, auto_flush=True)
    assert not out.exists()


def test_errors_share_base_class():
    for text in ('struct', 'struct S: Counter { "k" => E }', 'struct S: Nope { "k" => {a} }'):
        with pytest.raises(GenerationError):
            generate_source(text)


def test_render_catalog():
    md = render_catalog(parse(SCENARIO_B, 'http.dsl'))
    assert md.startswith('# Metrics Catalog')
    assert 'Source: http.dsl' in md
    assert '### Methods' in md
    assert 'get=`get`' in md
    assert '### Lhrs\nKind: LocalHistogram' in md
    assert 'Label `version`: `HTTP/1`, `HTTP/2`' in md
    assert 'Label `product` (label_enum FooBar)' in md
    assert 'Leaves: 16' in md


def test_bundled_example_spec(load, registry, fake_clock):
    spec_dir = Path(__file__).resolve().parent.parent / 'metrics' / 'spec'
    cfg = load_config(spec_dir / 'generator.yml')
    assert cfg.flush_interval == 1.0
    mod = load((spec_dir / 'http.dsl').read_text(encoding='utf-8'), auto_flush=True)
    assert set(mod.__all__) >= {'HttpLatency', 'HttpRequests', 'Methods', 'Products'}
    vec = Counter('http_requests', 'requests', ['method', 'status'], registry=registry)
    reqs = mod.HttpRequests.from_vec(vec)
    reqs.get(mod.Methods.get).client_error.inc()
    reqs.flush()
    assert registry.get_sample_value('http_requests_total', {'method': 'get', 'status': '4xx'}) == 1


def test_compile_module_is_standalone():
    mod = compile_module(generate_source(SCENARIO_A, context=GeneratorContext()), 'sm_standalone')
    assert mod.__name__ == 'sm_standalone'
    assert 'sm_standalone' not in sys.modules
    assert mod.DSL_HASH == compute_dsl_hash(SCENARIO_A)
