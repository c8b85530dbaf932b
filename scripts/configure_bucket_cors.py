#!/usr/bin/env python3
"""
Configure a bucket's CORS rules so the browser can upload through presigned URLs.

Usage:
    python scripts/configure_bucket_cors.py --bucket my-bucket
    python scripts/configure_bucket_cors.py --bucket my-bucket --origin https://files.example.com --dry-run

Credentials come from AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY (.env is loaded).
"""
import argparse
import json
import logging
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bucketdesk.config import DEFAULT_REGION
from bucketdesk.services.s3_service import build_cors_configuration, get_s3_service

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_ORIGINS = ['http://localhost:5700', 'http://127.0.0.1:5700']


def print_rules(title, rules):
    print(title)
    if rules:
        print(json.dumps(rules, indent=2))
    else:
        print("No CORS configuration found")


def main():
    parser = argparse.ArgumentParser(description='Apply browser-upload CORS rules to an S3 bucket')
    parser.add_argument('--bucket', default=os.getenv('S3_BUCKET_NAME'),
                        help='Bucket name (default: S3_BUCKET_NAME)')
    parser.add_argument('--region', default=os.getenv('AWS_REGION', DEFAULT_REGION),
                        help='Bucket region (default: AWS_REGION or us-east-1)')
    parser.add_argument('--origin', action='append', dest='origins',
                        help='Allowed origin; repeat for several (default: localhost:5700)')
    parser.add_argument('--dry-run', action='store_true',
                        help='Print the configuration without applying it')
    args = parser.parse_args()

    if not args.bucket:
        parser.error('--bucket is required when S3_BUCKET_NAME is not set')

    access_key = os.getenv('AWS_ACCESS_KEY_ID')
    secret_key = os.getenv('AWS_SECRET_ACCESS_KEY')
    if not access_key or not secret_key:
        logger.error("AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY must be set")
        return 1

    cors_configuration = build_cors_configuration(args.origins or DEFAULT_ORIGINS)

    print(f"Configuring CORS for bucket: {args.bucket}")
    print(f"Region: {args.region}\n")

    if args.dry_run:
        print_rules("Configuration to apply (dry run):", cors_configuration['CORSRules'])
        return 0

    s3_service = get_s3_service(args.bucket, access_key, secret_key, region=args.region)

    try:
        print_rules("Current CORS configuration:", s3_service.get_cors_rules())

        print("\n" + "=" * 50)
        print("Applying new CORS configuration...")
        print("=" * 50 + "\n")

        s3_service.put_cors_configuration(cors_configuration)
        print("[OK] CORS configuration updated successfully!\n")

        print_rules("New CORS configuration:", s3_service.get_cors_rules())
        if s3_service.region != args.region:
            print(f"\nNote: bucket lives in {s3_service.region}, not {args.region}")

    except Exception as e:
        logger.error(f"Error updating CORS configuration: {e}")
        print("\nPlease ensure:")
        print("1. Your AWS credentials have s3:GetBucketCors and s3:PutBucketCors permission")
        print("2. The bucket name is correct")
        print("3. You have network connectivity to AWS")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
