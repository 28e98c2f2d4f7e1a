"""pywgsl — CLI entry point.

Supported modes:
  tokens  — dump the token lines of every function
  wgsl    — emit the translated WGSL shader
  run     — translate, build the pipeline, dispatch on the GPU, print results
"""

import argparse
import logging
import sys
from typing import List, Tuple

import numpy as np

from .errors import PyWGSLError
from .session import Session, SessionConfig
from .shader import binding_declaration
from .tokenizer import Tokenizer
from .types import host_element_type


DEMO_PROGRAM = """\
function add(a, b) {
    let c = 5.0;
    while (c < 20) {
        c += 3;
    }
    return c;
}

function main_kernel() {
    let i = id.x;
    myBuffer[i] = myBuffer[i] * 2;
}
"""

DEMO_INPUTS = ["myBuffer=0,-1,-2,-3", "myBuffer2=0,1,2,3"]

DTYPES = {"float32": np.float32, "int32": np.int32, "uint32": np.uint32}


def parse_input(spec: str, dtype: str) -> Tuple[str, np.ndarray]:
    name, sep, values = spec.partition("=")
    if not sep or not name or not values:
        raise argparse.ArgumentTypeError(f"Expected NAME=v1,v2,..., got {spec!r}")
    data = np.array([float(v) for v in values.split(",")]).astype(DTYPES[dtype])
    return name.strip(), data


def parse_workgroup_size(text: str) -> Tuple[int, ...]:
    try:
        return tuple(int(v) for v in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid workgroup size {text!r}") from None


def _header(inputs: List[Tuple[str, np.ndarray]]) -> List[str]:
    return [binding_declaration(0, i, name, host_element_type(data))
            for i, (name, data) in enumerate(inputs)]


def translate(session: Session, functions: List[str], main: str, args):
    tokenizer = session.tokenizer
    for text in functions:
        name, _ = tokenizer.parse_declaration(tokenizer.tokenize(text)[0])
        if name == main:
            session.add_entry_point(text, workgroup_size=args.workgroup_size)
        else:
            session.add_function(text, return_type=args.return_type,
                                 param_types=_default_types(tokenizer, text, args.param_type))


def _default_types(tokenizer: Tokenizer, text: str, typ: str) -> List[str]:
    _, params = tokenizer.parse_declaration(tokenizer.tokenize(text)[0])
    return [typ] * len(params)


def main(argv=None):
    ap = argparse.ArgumentParser(description="Kernel function to WGSL translator")
    ap.add_argument("file", nargs="?", help="kernel source file (one or more functions)")
    ap.add_argument("--emit", choices=["tokens", "wgsl", "run"], default="wgsl",
                    help="Output mode (default: wgsl)")
    ap.add_argument("--demo", action="store_true", help="Use the built-in demo program")
    ap.add_argument("--main", help="entry function name (default: the last function)")
    ap.add_argument("--workgroup-size", type=parse_workgroup_size, default=(1,),
                    help="X[,Y[,Z]] (default: 1)")
    ap.add_argument("--return-type", default="f32", help="return type of helper functions")
    ap.add_argument("--param-type", default="f32", help="parameter type of helper functions")
    ap.add_argument("--input", action="append", default=[], metavar="NAME=v1,v2,...",
                    help="storage buffer input; repeatable")
    ap.add_argument("--dtype", choices=sorted(DTYPES), default="float32",
                    help="host element type of --input values")
    ap.add_argument("--dispatch", type=int, help="workgroup count (default: input length)")
    ap.add_argument("--legacy", action="store_true",
                    help="reproduce the historical line-rewrite quirks")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    # ── read source ──────────────────────────────────────────────────────
    if args.demo:
        source = DEMO_PROGRAM
        input_specs = args.input or DEMO_INPUTS
    elif args.file:
        with open(args.file) as f:
            source = f.read()
        input_specs = args.input
    else:
        ap.print_help()
        return 1

    tokenizer = Tokenizer()
    functions = tokenizer.split_functions(source)
    if not functions:
        print("No 'function' definitions found", file=sys.stderr)
        return 1

    try:
        inputs = [parse_input(spec, args.dtype) for spec in input_specs]
        main_name = args.main or tokenizer.parse_declaration(tokenizer.tokenize(functions[-1])[0])[0]

        # ── dispatch ─────────────────────────────────────────────────────
        if args.emit == "tokens":
            for text in functions:
                for line in tokenizer.tokenize(text):
                    print(line)
                print()

        elif args.emit == "wgsl":
            session = Session(config=SessionConfig(legacy=args.legacy), tokenizer=tokenizer)
            translate(session, functions, main_name, args)
            print("\n".join(_header(inputs) + [session.shader_code]), end="")

        elif args.emit == "run":
            session = Session.create(SessionConfig(legacy=args.legacy), tokenizer)
            for name, data in inputs:
                session.register_input(name, data)
                session.register_output(f"{name}_out", name, data)
            translate(session, functions, main_name, args)
            count = args.dispatch or (len(inputs[0][1]) if inputs else 1)
            results = session.run(workgroup_counts=count)
            for name, values in results.items():
                print(f"  {name}: {values.tolist()}")
            session.close()

    except (PyWGSLError, argparse.ArgumentTypeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
