"""Formal pipeline invariants.

This file documents what each phase MUST produce. Use it as a reviewer
anchor and system reference.
"""

PIPELINE_INVARIANTS = {
    "validating": [
        "Input and output paths are absolute",
        "Input exists, is a readable file, and has the configured extension",
        "No filesystem side effects",
    ],

    "extracting": [
        "Source file is never executed or imported",
        "id, durationInSeconds, fps, width, height are all explicitly present",
        "duration_in_frames == round(duration_in_seconds * fps) >= 1",
    ],

    "staging": [
        "Staging root is a fresh, uniquely named absolute directory",
        "Entry module lives inside the staging root",
        "Original source file is neither moved nor modified",
        "From here on the run owes exactly one release()",
    ],

    "bundling": [
        "Dependency search dirs are prepended to module and loader resolution",
        "Progress is monotonically non-decreasing within [0, 1]",
    ],

    "selecting": [
        "Composition id from the descriptor exists in the bundle",
    ],

    "rendering": [
        "Renderer receives the descriptor's frames, fps, width, height",
        "Output path is written only by the renderer, atomically or not at all",
    ],

    "terminal": [
        "Staging directory does not exist once the result is reported",
        "Cleanup failures are logged, never surfaced",
    ],
}

# Which phases allocate resources that must be released
PHASE_RESOURCES = {
    "validating": "NONE",
    "extracting": "NONE",
    "staging": "ACQUIRES",   # staging directory
    "bundling": "HOLDS",
    "selecting": "HOLDS",
    "rendering": "HOLDS",
}
