import pytest

from static_metric.dsl import EnumDef, MetricDef, TokenType, Visibility, parse, tokenize
from static_metric.utils.exceptions import ParseError

from tests._samples import SCENARIO_B


def test_tokenize_positions_and_comments():
    toks = tokenize('// header\npub struct X: Counter { # trailing\n "k" => {a} }')
    assert [t.type for t in toks[:3]] == [TokenType.PUB, TokenType.STRUCT, TokenType.IDENTIFIER]
    assert (toks[0].line, toks[0].column) == (2, 1)
    arrow = next(t for t in toks if t.type is TokenType.FAT_ARROW)
    assert arrow.line == 3
    assert toks[-1].type is TokenType.EOF


def test_string_escapes():
    toks = tokenize(r'"a\"b\\c\n\t"')
    assert toks[0].type is TokenType.STRING
    assert toks[0].value == 'a"b\\c\n\t'


@pytest.mark.parametrize('text,fragment', [
    ('"open', 'Unterminated string'),
    (r'"bad \q"', 'Invalid escape'),
    ('struct X: Counter { "k" => {a} } $', 'Unexpected character'),
])
def test_lexer_errors(text, fragment):
    with pytest.raises(ParseError) as ei:
        tokenize(text, 'm.dsl')
    assert fragment in str(ei.value)
    assert str(ei.value).startswith('m.dsl:1:')


def test_parse_scenario_b():
    body = parse(SCENARIO_B)
    assert [type(i) for i in body.items] == [EnumDef, EnumDef, MetricDef]
    foobar, methods = body.enums
    assert foobar.visibility is Visibility.PUBLIC
    assert [v.name for v in methods.values] == ['post', 'get', 'put', 'delete']
    (metric,) = body.metrics
    assert metric.struct_name == 'Lhrs'
    assert metric.kind == 'LocalHistogram'
    assert metric.label_keys == ('product', 'method', 'version')
    product, method, version = metric.labels
    assert product.enum_name == 'FooBar' and product.values is None
    assert method.is_enum
    assert [(v.name, v.label) for v in version.values] == [('http1', 'HTTP/1'), ('http2', 'HTTP/2')]


def test_visibility_forms():
    body = parse('label_enum A {x}  pub label_enum B {x}  pub(crate) label_enum C {x}')
    assert [e.visibility for e in body.enums] == [Visibility.PRIVATE, Visibility.PUBLIC, Visibility.RESTRICTED]
    assert not Visibility.RESTRICTED.is_public


def test_default_labels_case_fold():
    body = parse('label_enum E { Foo, BAR: "Bar" }')
    assert [v.label for v in body.enums[0].values] == ['foo', 'Bar']
    body = parse('label_enum E { Foo }', case_fold_labels=False)
    assert body.enums[0].values[0].label == 'Foo'


def test_trailing_commas_and_empty_enum():
    body = parse('label_enum E {}\nstruct S: Counter { "a" => {x,}, }')
    assert body.enums[0].values == ()
    assert body.metrics[0].labels[0].values[0].name == 'x'


def test_empty_body():
    assert parse('  // nothing here\n').items == ()


@pytest.mark.parametrize('text,fragment', [
    ('struct S Counter { "a" => {x} }', 'Expected `:`'),
    ('struct S: Counter { a => {x} }', 'a label key string'),
    ('struct S: Counter { "a" => {x} "b" => {y} }', 'Expected `,` or `}`'),
    ('enum E {x}', 'Expected `label_enum` or `struct`'),
    ('struct S: Counter { "a" => {x}, "a" => {y} }', 'Duplicate label key'),
    ('label_enum E { x, x }', 'Duplicate label value identifier `x`'),
    ('label_enum __E { x }', 'may not start with `__`'),
    ('struct S: Counter { "a" => {x}', 'end of input'),
])
def test_parse_errors(text, fragment):
    with pytest.raises(ParseError) as ei:
        parse(text)
    assert fragment in str(ei.value)


def test_parse_error_location():
    with pytest.raises(ParseError) as ei:
        parse('label_enum E { x }\nstruct S: Counter {\n  "a" => 42\n}', 'app.dsl')
    err = ei.value
    assert (err.line, err.source) == (3, 'app.dsl')
    assert err.location().startswith('app.dsl:3:')
