from __future__ import annotations

from novelharvest import apply_overrides, download_novel, load_config, parse_args, validate_args
from novelharvest.errors import CatalogError
from novelharvest.ui import ConsoleUI


def main() -> None:
    args = parse_args()
    validate_args(args)

    config = apply_overrides(load_config(args.config), args)
    ui = ConsoleUI()
    if args.config is not None and not args.config.is_file():
        ui.log_event(f"Config file not found: {args.config}; using defaults.", level="warning")

    try:
        download_novel(config, ui=ui, mode=args.mode)
    except KeyboardInterrupt:
        ui.log_event("Download interrupted by user.", level="error")
        raise SystemExit("Download interrupted by user.")
    except CatalogError as exc:
        ui.log_event(f"Catalog failed, nothing was downloaded: {exc}", level="error")
        raise SystemExit(str(exc)) from None
    except Exception as exc:
        ui.log_event(str(exc), level="error")
        raise SystemExit(str(exc)) from None
    finally:
        ui.finalize()


if __name__ == "__main__":
    main()
