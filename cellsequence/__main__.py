import asyncio
import logging
import sys

import cellsequence.config
import cellsequence.sequencer


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main () -> int:

	"""
	Run the sequencer from a YAML config (first argument, default ``config.yaml``).
	"""

	config_path = sys.argv[1] if len(sys.argv) > 1 else 'config.yaml'

	logger.info("cellsequence starting...")

	try:
		config = cellsequence.config.config_from_dict(cellsequence.config.load_config(config_path))
	except cellsequence.config.ConfigError as e:
		logger.error(f"Invalid configuration: {e}")
		return 1

	synth = cellsequence.sequencer.build_synth(config)
	seq = cellsequence.sequencer.Sequencer(config, synth=synth)

	if config.display:
		seq.display(grid=config.display_grid)

	try:
		asyncio.run(seq.run())
	except KeyboardInterrupt:
		logger.info("Stopping...")

	return 0


if __name__ == "__main__":
	sys.exit(main())
