"""File templates for the staged build project.

The staged project is the smallest Remotion project that can bundle a
single user file: a package manifest, a tsconfig, an entry module that
calls ``registerRoot`` and a root component that registers the user's
default export as a ``<Composition>``.
"""

import json
from pathlib import Path

PACKAGE_JSON = {
    "name": "tsxrender-staging",
    "version": "0.0.0",
    "private": True,
}

TSCONFIG_JSON = {
    "compilerOptions": {
        "target": "ES2018",
        "module": "commonjs",
        "jsx": "react-jsx",
        "strict": False,
        "esModuleInterop": True,
        "skipLibCheck": True,
        "forceConsistentCasingInFileNames": True,
        "lib": ["dom", "es2015"],
    },
}

ENTRY_MODULE = """\
import {{registerRoot}} from 'remotion';
import {{{root_name}}} from './Root';

registerRoot({root_name});
"""

ROOT_MODULE = """\
import React from 'react';
import {{Composition}} from 'remotion';
import UserComposition from {import_path};

export const {root_name}: React.FC = () => {{
  return (
    <Composition
      id={composition_id}
      component={{UserComposition}}
      durationInFrames={{{duration_in_frames}}}
      fps={{{fps}}}
      width={{{width}}}
      height={{{height}}}
    />
  );
}};
"""

ROOT_NAME = "RemotionRoot"


def import_specifier(source_path: Path) -> str:
    """Quoted, extension-less absolute import path for ``source_path``."""
    return json.dumps(Path(source_path).with_suffix("").as_posix())


def render_entry_module() -> str:
    return ENTRY_MODULE.format(root_name=ROOT_NAME)


def render_root_module(source_path: Path, descriptor) -> str:
    """Root component registering the user's default export under its id."""
    return ROOT_MODULE.format(
        import_path=import_specifier(source_path),
        root_name=ROOT_NAME,
        composition_id="{" + json.dumps(descriptor.id) + "}",
        duration_in_frames=descriptor.duration_in_frames,
        fps=descriptor.fps,
        width=descriptor.width,
        height=descriptor.height,
    )


def render_json(data: dict) -> str:
    return json.dumps(data, indent=2) + "\n"
