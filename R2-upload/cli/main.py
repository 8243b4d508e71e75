import os
import sys
import logging
import argparse

# Required: Use uvloop for the event loop
import uvloop

from configuration import UPLOAD_DIR

# Set up logging (only if not already configured)
if not logging.root.handlers:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


class SimpleR2UploadCLI:
    """Simple CLI interface for uploading files to R2."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self):
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            description='Cloudflare R2 upload CLI',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Upload a file; the stored key and public URL are printed
  r2-upload upload ./report.pdf

  # Upload under a different name (the extension decides the type)
  r2-upload upload /tmp/php4Xk2 --name report.pdf

  # Public URL for an already stored key
  r2-upload url usr/uploads/2024/03/1234567890.pdf

  # Check that the bucket is reachable with the configured credentials
  r2-upload verify
            """
        )

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        upload_parser = subparsers.add_parser('upload', help='Upload a file')
        upload_parser.add_argument('file', type=str, help='Path of the file to upload')
        upload_parser.add_argument('--name', type=str, default=None,
                                   help='Original file name (default: basename of FILE)')
        upload_parser.add_argument('--upload-path', type=str, default=None,
                                   help=f'Key prefix (default: $R2_UPLOAD_PATH, $UPLOAD_DIR or {UPLOAD_DIR})')
        upload_parser.add_argument('--keep-source', action='store_true',
                                   help='Leave FILE in place; the local mirror gets a copy')

        url_parser = subparsers.add_parser('url', help='Print the public URL of a stored key')
        url_parser.add_argument('path', type=str, help='Stored object key')

        subparsers.add_parser('verify', help='Verify bucket access')

        return parser

    def _uploader(self, args):
        from cli.uploader import Uploader
        from common.config_source import EnvConfigurationSource

        overrides = {'upload_path': getattr(args, 'upload_path', None)}
        return Uploader(EnvConfigurationSource(overrides))

    async def run_upload(self, args):
        """Upload one local file."""
        try:
            from persistence.record import UploadRequest

            logger.info("=== Upload ===")

            if not os.path.isfile(args.file):
                logger.error(f"File not found: {args.file}")
                return 1

            uploader = self._uploader(args)
            name = args.name or os.path.basename(args.file)

            if args.keep_source:
                with open(args.file, 'rb') as f:
                    request = UploadRequest(name, f.read())
            else:
                request = UploadRequest(name, args.file)

            result = await uploader.upload(request)

            if result is None:
                logger.error("Upload failed")
                return 1

            print(result.path)
            print(uploader.attachment_url(result.path))
            return 0

        except Exception as e:
            logger.error(f"Error during upload: {e}")
            return 1

    def run_url(self, args):
        """Print the public URL for a key."""
        uploader = self._uploader(args)
        print(uploader.attachment_url(args.path))
        return 0

    async def run_verify(self, args):
        """Verify the configured bucket is reachable."""
        try:
            uploader = self._uploader(args)
            ok = await uploader.verify()
            return 0 if ok else 1
        except Exception as e:
            logger.error(f"Error verifying connection: {e}")
            return 1

    def run(self, args=None):
        """Run the CLI with the given arguments."""
        if args is None:
            args = sys.argv[1:]

        parsed_args = self.parser.parse_args(args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            if parsed_args.command == 'upload':
                return uvloop.run(self.run_upload(parsed_args))
            elif parsed_args.command == 'url':
                return self.run_url(parsed_args)
            elif parsed_args.command == 'verify':
                return uvloop.run(self.run_verify(parsed_args))
            else:
                logger.error(f"Unknown command: {parsed_args.command}")
                return 1

        except KeyboardInterrupt:
            logger.info("Operation interrupted by user")
            return 1


def main():
    """Main entry point."""
    cli = SimpleR2UploadCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
