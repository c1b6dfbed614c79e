"""
Summary: Rust wrapper templates for Expression, Bare and Loop scripts.
Why: Keep big string literals out of the synthesizer and make offsets explicit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from cargoscript.features.manifest import ScriptKind


@dataclass(slots=True, frozen=True)
class WrapperTemplate:
    """Text placed before and after the verbatim script body.

    The body is inserted unindented at the start of a line, so columns are
    preserved and the line offset equals the preamble's line count.
    """

    preamble: str
    postamble: str

    @property
    def offset(self) -> int:
        return self.preamble.count("\n")

    def wrap(self, body: str) -> str:
        if body and not body.endswith("\n"):
            body += "\n"
        return self.preamble + body + self.postamble


BARE_TEMPLATE: Final[WrapperTemplate] = WrapperTemplate(
    preamble="fn main() {\n",
    postamble="}\n",
)

EXPR_TEMPLATE: Final[WrapperTemplate] = WrapperTemplate(
    preamble="""\
fn main() {
    let exit_code = match try_main() {
        Ok(()) => None,
        Err(e) => {
            eprintln!("Error: {}", e);
            Some(1)
        }
    };
    if let Some(exit_code) = exit_code {
        std::process::exit(exit_code);
    }
}

#[allow(unreachable_code)]
fn try_main() -> Result<(), Box<dyn std::error::Error>> {
    match {
""",
    postamble="""\
    } {
        __cargo_script_expr => println!("{:?}", __cargo_script_expr),
    }
    Ok(())
}
""",
)

_LOOP_PREAMBLE: Final[str] = """\
use std::any::Any;
use std::io::prelude::*;

fn main() {
    let mut closure = enforce_closure(
"""

_LOOP_POSTAMBLE: Final[str] = """\
    );
    let mut line_buffer = String::new();
    let stdin = std::io::stdin();
    let mut stdin = stdin.lock();
{count_decl}    loop {{
        line_buffer.clear();
        let read_res = stdin.read_line(&mut line_buffer).unwrap_or(0);
        if read_res == 0 {{
            break;
        }}
{count_step}        let output = closure(&line_buffer{count_arg});

        let display = {{
            let output_any: &dyn Any = &output;
            !output_any.is::<()>()
        }};

        if display {{
            println!("{{:?}}", output);
        }}
    }}
}}

fn enforce_closure<F, T>(closure: F) -> F
where
    F: FnMut(&str{count_type}) -> T,
    T: 'static + std::fmt::Debug,
{{
    closure
}}
"""


def loop_template(*, count: bool) -> WrapperTemplate:
    """Build the per-line closure template, optionally passing a 1-based line count."""

    postamble = _LOOP_POSTAMBLE.format(
        count_decl="    let mut count: usize = 0;\n" if count else "",
        count_step="        count += 1;\n" if count else "",
        count_arg=", count" if count else "",
        count_type=", usize" if count else "",
    )
    return WrapperTemplate(preamble=_LOOP_PREAMBLE, postamble=postamble)


def template_for(kind: ScriptKind, *, count: bool = False) -> WrapperTemplate | None:
    """Return the wrapper for ``kind``; ``None`` means the body is used verbatim."""

    if kind is ScriptKind.FULL:
        return None
    if kind is ScriptKind.BARE:
        return BARE_TEMPLATE
    if kind is ScriptKind.EXPRESSION:
        return EXPR_TEMPLATE
    return loop_template(count=count)


__all__ = ["BARE_TEMPLATE", "EXPR_TEMPLATE", "WrapperTemplate", "loop_template", "template_for"]
