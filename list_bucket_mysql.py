#!/usr/bin/env python3
"""
Browse a large S3 bucket page by page and record each object in MySQL.

Every key is split into a prefix and a video id (see s3_keys.parse_s3_key)
and inserted into scraped_videos (video_id, bucket_name, prefix, s3_key).

MySQL: DB_NAME, DB_USER, DB_PASSWORD (optionally DB_HOST, DB_PORT)
AWS:   standard credential chain (env vars or ~/.aws/credentials)

Example:
    list-bucket-mysql -bucket_name scrape-bucket -maxPages 5 -prefix aa2019/ -verbose y
"""
import argparse
import logging
import sys

from dotenv import load_dotenv

from aws_utils import aws_s3_conn
from bucket_to_sql import BrowseConfig, BucketWalker, DbSettings, MySQLSink, S3PageFetcher, get_db_engine
from ingest_errors import ServiceError, StoreConnectionError
from logger_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Utility to browse large AWS S3 buckets into MySQL")
    parser.add_argument("-bucket_name", "--bucket_name", default="scrape-bucket", help="input bucket")
    parser.add_argument("-region", "--region", default="us-east-1", help="region")
    parser.add_argument("-maxPages", "--maxPages", dest="max_pages", type=int, default=10,
                        help="max pages to scan, 10 default")
    parser.add_argument("-verbose", "--verbose", default="n", choices=["y", "n"], help="verbose y/n")
    parser.add_argument("-prefix", "--prefix", default="", help="bucket prefix")
    parser.add_argument("-s3key_offset", "--s3key_offset", dest="key_offset", type=int, default=1,
                        help="video_id offset in s3_key, using / delimiter")
    parser.add_argument("-log_file", "--log_file", default=None, help="also log to this file")
    return parser


def main(argv=None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    verbose = args.verbose == "y"
    setup_logging(log_file=args.log_file, verbose=verbose)

    try:
        config = BrowseConfig(
            bucket_name=args.bucket_name,
            region=args.region,
            max_pages=args.max_pages,
            prefix=args.prefix,
            key_offset=args.key_offset,
            verbose=verbose,
        )
    except ValueError as e:
        logger.error("%s", e)
        return 2

    try:
        sink = MySQLSink.connect(get_db_engine(DbSettings.from_env()), config.table)
    except StoreConnectionError as e:
        logger.error("%s", e)
        return 1

    with sink:
        s3svc, _ = aws_s3_conn(config.region)
        walker = BucketWalker(config, S3PageFetcher(s3svc, config.bucket_name, config.prefix), sink)
        try:
            state = walker.run()
        except ServiceError:
            return 1

    logger.info(
        "done: pages %d, scanned %d, inserted %d, parse failures %d, insert failures %d",
        state.page_count, state.total_processed, state.inserted,
        state.parse_failures, state.insert_failures,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
