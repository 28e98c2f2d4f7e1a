"""Standalone example: translate a kernel to WGSL, fix a type, and run on the GPU.

The whole round trip in plain Python, no CLI involved:
  1. Register the host buffers the shader reads and writes
  2. Translate a helper and the entry point (first pass, locals default to f32)
  3. Inspect the inferred variable types and correct them
  4. Regenerate, build the pipeline, dispatch and read back
"""

import numpy as np

from pywgsl import Session

# ── Step 1: device and buffers ───────────────────────────────────────────────

session = Session.create()

data = np.array([0, -1, -2, -3, 4, 5, 6, 7], dtype=np.int32)
session.register_input("myBuffer", data)
session.register_output("result", "myBuffer", data)

# ── Step 2: translate ────────────────────────────────────────────────────────

session.add_function("""
function scale(x) {
    let k = 2;
    return x * k;
}
""")

session.add_entry_point("""
function main_kernel() {
    let i = id.x;
    myBuffer[i] = scale(myBuffer[i]);
}
""", workgroup_size=1)

print("--- First pass ---")
print(session.shader_code)

# ── Step 3: correction loop ──────────────────────────────────────────────────
# Everything in `scale` defaulted to f32, but the buffer holds i32.

print("scale:", {name: str(t) for name, t in session.list_variables("scale").items()})
for variable in ("x", "k", "return"):
    session.submit_edit("scale", variable, "i32")

print("--- Regenerated ---")
print(session.confirm().text)

# ── Step 4: run ──────────────────────────────────────────────────────────────

results = session.run(workgroup_counts=len(data))

print("--- GPU results ---")
for name, values in results.items():
    print(f"  {name}: {values.tolist()}")

# Expected: result[i] = 2 * myBuffer[i]
#   → [0, -2, -4, -6, 8, 10, 12, 14]

session.close()
