# ==============================================================================
# PAK HARVESTER - MAIN ENTRY POINT
# ==============================================================================
# This is the main entry point for the PakHarvester application.
#
# Usage:
#   python main.py list --archive sprites.pak    # Run a CLI command
#   python main.py --help                         # Show help
#   python main.py --check                        # Check dependencies
#   python main.py --paths                        # Show data paths
# ==============================================================================

import sys
import traceback

VERSION = "1.0.0"


# ==============================================================================
# BANNER
# ==============================================================================

def print_banner():
    """Print the application banner."""
    banner = f"""
    ╔═══════════════════════════════════════════════════════════════╗
    ║                                                               ║
    ║    PAK HARVESTER                                              ║
    ║    Sprite extraction for undocumented game PAK containers     ║
    ║                        Version {VERSION}                          ║
    ║                                                               ║
    ╚═══════════════════════════════════════════════════════════════╝
    """
    print(banner)


# ==============================================================================
# DEPENDENCY CHECKS
# ==============================================================================

def check_dependencies():
    """
    Check if required dependencies are installed.

    Returns:
        Tuple of (all_ok, missing_packages)
    """
    missing = []

    # Import name -> package name on the index
    core_deps = {'PIL': 'Pillow', 'numpy': 'numpy'}

    for module, package in core_deps.items():
        try:
            __import__(module)
        except ImportError:
            missing.append(package)

    return (len(missing) == 0, missing)


# ==============================================================================
# ARGUMENT PARSING
# ==============================================================================

def parse_args():
    """Parse launcher flags; everything else is left for the CLI parser."""
    args = {
        'help': sys.argv[1:2] in (['--help'], ['-h']) or len(sys.argv) == 1,
        'version': '--version' in sys.argv,
        'check': '--check' in sys.argv,
        'paths': '--paths' in sys.argv,
    }
    return args


# ==============================================================================
# MAIN FUNCTION
# ==============================================================================

def main():
    """
    Main entry point for PakHarvester.

    Handles launcher flags, then hands everything else to the CLI.
    """
    try:
        args = parse_args()

        # Handle --version
        if args['version']:
            print(f"PakHarvester v{VERSION}")
            return 0

        # Handle --paths
        if args['paths']:
            from pakharvester.core.paths import Paths
            print("PakHarvester Paths:")
            print(f"  User Data:      {Paths.get_user_data_dir(create=False)}")
            print(f"  Config:         {Paths.get_config_path()}")
            print(f"  Default Output: {Paths.get_default_output_dir()}")
            return 0

        # Handle --check
        if args['check']:
            print("Checking dependencies...")
            print(f"  Python: {sys.version}")

            all_ok, missing = check_dependencies()

            if all_ok:
                import numpy
                import PIL
                print(f"[OK] Pillow {PIL.__version__}")
                print(f"[OK] numpy {numpy.__version__}")
            else:
                print(f"[MISSING] {', '.join(missing)}")

            return 0 if all_ok else 1

        # Check core dependencies
        all_ok, missing = check_dependencies()
        if not all_ok:
            print(f"[ERROR] Missing required packages: {', '.join(missing)}")
            print(f"Install with: pip install {' '.join(missing)}")
            return 1

        if args['help']:
            print_banner()

        from pakharvester.cli import main as cli_main
        return cli_main(sys.argv[1:])

    except KeyboardInterrupt:
        print("\n[INFO] Interrupted")
        return 130
    except Exception as e:
        print(f"\n[FATAL ERROR] {e}")
        traceback.print_exc()
        return 1


# ==============================================================================
# SCRIPT ENTRY POINT
# ==============================================================================
if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
