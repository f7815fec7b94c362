"""
Reporter - Human-readable reports from an output manifest.
"""

import logging
import sys
from typing import Optional, TextIO

from .output_manifest import OutputManifest


class Reporter:
    """
    Prints build summaries and failure listings.
    """

    def __init__(
        self,
        output: Optional[TextIO] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize reporter.

        Args:
            output: Output stream (default: stdout)
            logger: Optional logger instance
        """
        self.output = output or sys.stdout
        self.logger = logger or logging.getLogger(__name__)

    def _print(self, text: str = "") -> None:
        print(text, file=self.output)

    def _format_bytes(self, bytes_val: float) -> str:
        """Format bytes as human-readable string."""
        for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
            if bytes_val < 1024:
                return f"{bytes_val:.1f} {unit}"
            bytes_val /= 1024
        return f"{bytes_val:.1f} PB"

    def _format_duration(self, seconds: float) -> str:
        if seconds < 60:
            return f"{seconds:.1f} seconds"
        elif seconds < 3600:
            return f"{seconds / 60:.1f} minutes"
        else:
            return f"{seconds / 3600:.1f} hours"

    def report_summary(self, manifest: OutputManifest) -> None:
        """Generate a summary report."""
        stats = manifest.stats
        self._print("=" * 70)
        self._print("IMAGE PROCESSING SUMMARY")
        self._print("=" * 70)
        self._print()

        self._print("Build Information:")
        self._print(f"  Created:     {manifest.created_at}")
        self._print(f"  Output:      {manifest.output_dir}")
        self._print(f"  Build Time:  {self._format_duration(stats.get('elapsed_seconds', 0.0))}")
        self._print()

        self._print("Artifacts:")
        self._print(f"  Encoded:              {stats.get('encoded', 0):,}")
        self._print(f"  Reused from cache:    {stats.get('cache_hit', 0):,}")
        self._print(f"  Copied from cache:    {stats.get('copied', 0):,}")
        self._print(f"  Failed:               {stats.get('failed', 0):,}")
        self._print(f"  Bytes written:        {self._format_bytes(stats.get('bytes_written', 0))}")
        self._print()

        self._print("Albums:")
        self._print("-" * 70)
        self._print(f"{'Album':<30} {'Images':>10} {'Artifacts':>12} {'Unprocessable':>15}")
        self._print("-" * 70)

        for album in manifest.albums:
            artifacts = sum(
                len(i.responsive) + (1 if i.thumbnail else 0) for i in album.images
            )
            self._print(
                f"{album.path:<30} {len(album.images):>10,} "
                f"{artifacts:>12,} {len(album.unprocessable):>15,}"
            )

        self._print("-" * 70)
        self._print(
            f"{'Total':<30} {manifest.total_images:>10,} "
            f"{manifest.total_artifacts:>12,} {len(manifest.unprocessable_images):>15,}"
        )
        self._print()

    def report_failures(self, manifest: OutputManifest) -> None:
        """List every image that reported an error."""
        self._print("=" * 70)
        self._print("FAILURES")
        self._print("=" * 70)
        self._print()

        count = 0
        for album in manifest.albums:
            for image in album.images:
                if not image.errors:
                    continue
                count += 1
                status = "unprocessable" if not image.processable else "partial"
                self._print(f"{album.path}/{image.filename} ({status})")
                for error in image.errors:
                    self._print(f"    {error}")

        if count == 0:
            self._print("No failures.")
        else:
            self._print()
            self._print(f"{count} image(s) with errors")
        self._print()
