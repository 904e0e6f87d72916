"""DSL bodies shared by several test modules."""

SCENARIO_A = """
struct Lhrs: LocalCounter {
    "product" => { foo, bar },
}
"""

SCENARIO_B = """
pub label_enum FooBar { foo, bar }
pub label_enum Methods { post, get, put, delete }

pub struct Lhrs: LocalHistogram {
    "product" => FooBar,
    "method" => Methods,
    "version" => { http1: "HTTP/1", http2: "HTTP/2" },
}
"""

# Same shape as SCENARIO_B over shared (non-local) kinds, for baseline mode.
SHARED_B = SCENARIO_B.replace("LocalHistogram", "Histogram")
