"""Command-line interface for numeric captcha solving."""

import argparse
import json
import logging
import sys
from pathlib import Path

from numcaptcha.config import DEFAULT_TESSERACT_LANG, LOG_FORMAT
from numcaptcha.errors import CaptchaError


def _serve(args):
    """Run the HTTP service under uvicorn."""
    import uvicorn

    from numcaptcha.web.app import create_app

    try:
        app = create_app()
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    uvicorn.run(app, host=args.host, port=args.port)


def _load_image(ref: str):
    from numcaptcha.sources import decode_image, load_image_bytes

    if ref.startswith(("data:", "http://", "https://")):
        return decode_image(load_image_bytes(ref))

    image_path = Path(ref)
    if not image_path.exists():
        raise FileNotFoundError(f"Image not found: {image_path}")
    return decode_image(image_path.read_bytes())


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="numcaptcha",
        description="Read the digits of a numeric captcha image",
    )
    parser.add_argument(
        "image",
        nargs="?",
        help="Image file path, data:image/...;base64 URL, or http(s) URL",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--save-binary",
        metavar="PATH",
        help="Write the binarized PNG handed to OCR to PATH",
    )
    parser.add_argument(
        "--preprocess-only",
        action="store_true",
        help="Stop after binarization, do not run OCR",
    )
    parser.add_argument(
        "--tessdata-dir",
        help="Path to Tesseract tessdata directory",
    )
    parser.add_argument(
        "--tesseract-lang",
        default=DEFAULT_TESSERACT_LANG,
        help=f"Tesseract language code (default: {DEFAULT_TESSERACT_LANG})",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP service (reads APP_PASSWORD etc. from the environment)",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Bind address for --serve")
    parser.add_argument("--port", type=int, default=8080, help="Port for --serve")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show preprocessing details and debug logging",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING, format=LOG_FORMAT
    )

    if args.serve:
        _serve(args)
        return

    if not args.image:
        parser.error("the following arguments are required: image")

    from numcaptcha.api import CaptchaSolver

    try:
        image = _load_image(args.image)
        prepared = CaptchaSolver.preprocess(image)
    except (CaptchaError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.save_binary:
        Path(args.save_binary).write_bytes(prepared.png)

    if args.preprocess_only:
        _print_preprocess_result(prepared, args.format)
        return

    try:
        solver = CaptchaSolver(
            tessdata_dir=args.tessdata_dir,
            tesseract_lang=args.tesseract_lang,
        )
        result = solver.recognize(prepared)
    except CaptchaError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    _print_solve_result(result, prepared, args.format, args.verbose)


def _print_preprocess_result(prepared, fmt):
    if fmt == "json":
        print(json.dumps(prepared.to_dict(), indent=2))
    else:
        print(f"Size:            {prepared.width}x{prepared.height}")
        print(f"ROI Mean:        {prepared.roi_mean:.2f}")
        print(f"Digits Lighter:  {prepared.numbers_are_lighter}")
        print(f"Threshold:       {prepared.threshold}")


def _print_solve_result(result, prepared, fmt, verbose):
    if fmt == "json":
        output = result.to_dict()
        if verbose:
            output["preprocessing"] = prepared.to_dict()
        print(json.dumps(output, indent=2))
        return

    if not verbose:
        print(result.text)
        return

    print(f"Text:            {result.text or 'N/A'}")
    print(f"Raw OCR:         {result.raw_text.strip()!r}")
    print(f"Engine:          {result.engine}")
    _print_preprocess_result(prepared, "text")


if __name__ == "__main__":
    main()
