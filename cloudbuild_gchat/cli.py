#!/usr/bin/env python
# coding: utf-8

import argparse
import logging

import uvicorn

from config_management.loader import load_config, register

from .main import app


def main(argv=None):

    parser = argparse.ArgumentParser(description='Cloud Build notifications to Google Chat')
    parser.add_argument('-c', '--config',
                        default=None,
                        help='JSON configuration file (env: CLOUDBUILD_GCHAT_CONFIG)',
                        type=str)
    parser.add_argument('--host',
                        default=None,
                        help='listen address',
                        type=str)
    parser.add_argument('--port',
                        default=None,
                        help='listen port (env: PORT)',
                        type=int)
    parser.add_argument('-l', '--logging',
                        dest='log_level',
                        default=None,
                        help='logging level(DEBUG,INFO,WARNING,ERROR,CRITICAL)',
                        type=str)
    register(parser)
    args = parser.parse_args(argv)

    config = load_config(args.config,
                         gchat_webhook=args.gchat_webhook,
                         host=args.host,
                         port=args.port,
                         log_level=args.log_level)
    logging.getLogger().setLevel(config.log_level.upper())

    app.state.config = config
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == '__main__':
    main()
