"""
Contentful export handler.

Runs `contentful space export` (contentful-cli) to dump a whole space
environment, drafts included, into a local JSON file.
"""

import os
import json
import logging
import subprocess
import tempfile
from typing import Dict, Any, List

from space_backup.config import BackupConfig


logger = logging.getLogger(__name__)

# Page size used by the CLI when paging through entries and assets
MAX_ALLOWED_LIMIT = 200


class ExportError(Exception):
    """Raised when the space export fails."""
    pass


class ContentfulExporter:
    """
    Handler for exporting a Contentful space environment.

    Options are handed to the CLI through a temporary `--config` file so the
    tokens never show up in the process list.
    """

    def __init__(
        self,
        space_id: str,
        environment_id: str,
        management_token: str,
        delivery_token: str,
        cli_command: str = 'contentful'
    ):
        self.space_id = space_id
        self.environment_id = environment_id
        self.management_token = management_token
        self.delivery_token = delivery_token
        self.cli_command = cli_command

    @classmethod
    def from_config(cls, config: BackupConfig) -> 'ContentfulExporter':
        return cls(
            space_id=config.space_id,
            environment_id=config.environment_id,
            management_token=config.management_token,
            delivery_token=config.delivery_token,
            cli_command=config.contentful_cli
        )

    def build_options(self, export_dir: str, content_file: str) -> Dict[str, Any]:
        """
        Build the export options.

        Args:
            export_dir: Directory the CLI writes into
            content_file: Name of the JSON file to write

        Returns:
            Options dict in contentful-export's format
        """
        return {
            'spaceId': self.space_id,
            'environmentId': self.environment_id,
            'managementToken': self.management_token,
            'deliveryToken': self.delivery_token,
            'contentFile': content_file,
            'exportDir': export_dir,
            'useVerboseRenderer': False,
            'saveFile': True,
            'includeDrafts': True,
            'maxAllowedLimit': MAX_ALLOWED_LIMIT,
        }

    def build_command(self, config_path: str) -> List[str]:
        return [self.cli_command, 'space', 'export', '--config', config_path]

    def export(self, export_dir: str, content_file: str) -> str:
        """
        Export the space into export_dir/content_file.

        Blocks until the CLI exits.

        Args:
            export_dir: Directory to write into
            content_file: Name of the JSON file to write

        Returns:
            Path to the exported JSON file

        Raises:
            ExportError: If the CLI is missing, exits non-zero, or writes no file
        """
        os.makedirs(export_dir, exist_ok=True)
        export_path = os.path.join(export_dir, content_file)
        options = self.build_options(export_dir, content_file)

        fd, config_path = tempfile.mkstemp(prefix='export-config-', suffix='.json', dir=export_dir)
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(options, f)

            command = self.build_command(config_path)
            logger.debug(f"Running command: {' '.join(command)}")

            try:
                result = subprocess.run(command, check=True, capture_output=True, text=True)
            except FileNotFoundError:
                raise ExportError(f"Contentful CLI not found: {self.cli_command}")
            except subprocess.CalledProcessError as e:
                stderr = e.stderr.strip() if e.stderr else ''
                raise ExportError(f"Contentful export failed with code {e.returncode}: {stderr}")

            if result.stdout:
                logger.debug(f"Command stdout: {result.stdout.strip()}")
        finally:
            try:
                os.remove(config_path)
            except FileNotFoundError:
                pass

        if not os.path.isfile(export_path):
            raise ExportError(f"Contentful export produced no file at {export_path}")

        logger.info(
            f"Data downloaded successfully from Contentful for Space ID: {self.space_id} "
            f"and Environment: {self.environment_id}"
        )
        return export_path
