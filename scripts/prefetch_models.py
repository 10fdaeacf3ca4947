"""Download the sentence-transformers embedding model into a local directory for offline runs."""
from __future__ import annotations

import argparse
import os
from pathlib import Path

from sentence_transformers import SentenceTransformer

DEFAULT_EMBEDDING_MODEL = "sentence-transformers/all-MiniLM-L6-v2"


def prefetch_embedding_model(model_name: str, output_dir: Path) -> Path:
    model = SentenceTransformer(model_name)
    target_dir = output_dir / model_name
    target_dir.parent.mkdir(parents=True, exist_ok=True)
    model.save(str(target_dir))
    return target_dir


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--output-dir",
        default="models",
        help="Directory for saved models (default: models)",
    )
    parser.add_argument(
        "--embedding-model",
        default=os.getenv("EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
        help="Hugging Face model id (default: $EMBEDDING_MODEL or %(default)s)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    output_dir = Path(args.output_dir).expanduser()
    print(f"Saving models to: {output_dir}")
    saved_path = prefetch_embedding_model(args.embedding_model, output_dir)
    print(f"embedding: {args.embedding_model} -> {saved_path}")
    print(f"Set EMBEDDING_MODEL={saved_path} to use the local copy.")


if __name__ == "__main__":
    main()
