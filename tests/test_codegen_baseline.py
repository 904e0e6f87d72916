import pytest
from prometheus_client import Counter, Histogram

from static_metric.codegen.pipeline import generate_source
from static_metric.utils.exceptions import LayoutAssumptionViolation

from tests._samples import SHARED_B


def test_enum_surface(load):
    mod = load(SHARED_B)
    Methods = mod.Methods
    assert [m.name for m in Methods] == ['post', 'get', 'put', 'delete']
    assert [m.value for m in Methods] == [0, 1, 2, 3]
    assert Methods.get.get_str() == 'get'
    assert str(Methods.put) == 'put'
    assert Methods.from_label('delete') is Methods.delete
    assert mod._Methods_FIELDS[Methods.get] == 'get'
    with pytest.raises(KeyError):
        Methods.from_label('patch')


def test_enum_reserved_member_names(load):
    mod = load('label_enum E { name, value: "v", plain }')
    assert mod.E.name_.get_str() == 'name'
    assert mod.E.value_.get_str() == 'v'
    assert mod.E.from_label('plain') is mod.E.plain


def test_baseline_counter_hits_shared_child(load, registry):
    mod = load('struct Lhrs: Counter { "product" => { foo, bar } }')
    vec = Counter('lhrs_requests', 'requests', ['product'], registry=registry)
    m = mod.Lhrs.from_vec(vec)
    m.foo.inc()
    m.foo.inc(2)
    assert registry.get_sample_value('lhrs_requests_total', {'product': 'foo'}) == 3
    assert registry.get_sample_value('lhrs_requests_total', {'product': 'bar'}) == 0
    assert m.foo is vec.labels(product='foo')
    m.flush()  # no-op for shared kinds


def test_get_identity_for_every_variant(load, registry):
    mod = load(SHARED_B)
    vec = Histogram('lat_seconds', 'latency', ['product', 'method', 'version'], registry=registry)
    m = mod.Lhrs.from_vec(vec)
    for product in mod.FooBar:
        level = m.get(product)
        assert level is getattr(m, product.name)
        for method in mod.Methods:
            attr = 'get_' if method.name == 'get' else method.name
            assert level.get(method) is getattr(level, attr)
    # inline value lists have no enum, so only try_get exists there
    leaf_level = m.foo.post
    assert not hasattr(leaf_level, 'get')
    assert leaf_level.try_get('HTTP/2') is leaf_level.http2
    assert leaf_level.try_get('HTTP/3') is None


def test_try_get_uses_label_strings(load):
    mod = load('label_enum E { a: "A", b }\nstruct S: Counter { "p" => E }')
    vec = Counter('s_total', 's', ['p'], registry=None)
    m = mod.S.from_vec(vec)
    assert m.try_get('A') is m.a
    assert m.try_get('a') is None
    assert m.get(mod.E.b) is m.b


def test_histogram_leaf_labels(load, registry):
    mod = load(SHARED_B)
    vec = Histogram('lat2_seconds', 'latency', ['product', 'method', 'version'], registry=registry)
    m = mod.Lhrs.from_vec(vec)
    m.bar.get_.http2.observe(0.5)
    labels = {'product': 'bar', 'method': 'get', 'version': 'HTTP/2'}
    assert registry.get_sample_value('lat2_seconds_count', labels) == 1
    assert registry.get_sample_value('lat2_seconds_sum', labels) == 0.5
    assert len(m._sm_leaves) == m.LEAF_COUNT == 16


def test_baseline_local_kind_buffers_until_flush(load, registry):
    mod = load('struct S: LocalCounter { "p" => { a, b } }')
    vec = Counter('loc', 'local', ['p'], registry=registry)
    m = mod.S.from_vec(vec)
    m.a.inc(4)
    assert m.a.get() == 4
    assert registry.get_sample_value('loc_total', {'p': 'a'}) == 0
    m.flush()
    assert registry.get_sample_value('loc_total', {'p': 'a'}) == 4
    assert m.a.get() == 0


def test_exports_and_visibility(load):
    text = 'pub label_enum P { x }\nlabel_enum Q { y }\npub struct A: Counter { "k" => P }\nstruct B: Counter { "k" => Q }'
    mod = load(text)
    assert mod.__all__ == ['DSL_HASH', 'P', 'A', 'AInner']
    # private items are still importable
    assert mod.B is mod.BInner and mod.Q.y
    assert len(mod.DSL_HASH) == 16
    mod = load(text, export_inner=False)
    assert mod.__all__ == ['DSL_HASH', 'P', 'A']
    assert not hasattr(mod, 'AInner')


def test_keyword_fields(load, registry):
    mod = load('struct S: Counter { "k" => { class, flush, ok } }')
    vec = Counter('kw', 'kw', ['k'], registry=registry)
    m = mod.S.from_vec(vec)
    m.class_.inc()
    m.flush_.inc()
    assert registry.get_sample_value('kw_total', {'k': 'class'}) == 1
    assert registry.get_sample_value('kw_total', {'k': 'flush'}) == 1


def test_label_key_self(load, registry):
    mod = load('struct S: Counter { "self" => { a }, "zone" => { eu } }')
    vec = Counter('selfy', 'x', ['zone', 'self'], registry=registry)
    mod.S.from_vec(vec).a.eu.inc()
    assert registry.get_sample_value('selfy_total', {'self': 'a', 'zone': 'eu'}) == 1


def test_enum_tables_survive_struct_names(load):
    mod = load('label_enum E { a }\nstruct E_LABELS: Counter { "k" => E }')
    assert mod.E.a.get_str() == 'a'


def test_layout_check_guards_root(load, registry):
    mod = load('struct S: Counter { "k" => { a, b } }')
    vec = Counter('lay', 'lay', ['k'], registry=registry)
    mod.SInner.LEAF_COUNT = 3
    with pytest.raises(LayoutAssumptionViolation):
        mod.S.from_vec(vec)


def test_generated_source_shape():
    src = generate_source(SHARED_B, source_name='http.dsl')
    assert src.startswith('# Auto-generated file\n# SOURCE OF TRUTH: http.dsl')
    assert 'from __future__ import annotations' in src
    assert 'import static_metric.metrics as _sm' in src
    assert src.index('class FooBar(_enum.Enum):') < src.index('class _static_scope_')
    assert '\nLhrs = _static_scope_' in src
    compile(src, 'http.py', 'exec')


def test_runtime_package_configurable():
    from static_metric.config import GeneratorConfig
    src = generate_source(SHARED_B, config=GeneratorConfig(runtime_package='myapp.sm_runtime'))
    assert 'import myapp.sm_runtime as _sm' in src
