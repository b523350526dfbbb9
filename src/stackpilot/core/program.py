"""
The Pulumi program deployed by stackpilot: a static website on S3.

Resources: a website-enabled bucket, an ``index.html`` object, and a bucket
policy granting public read.  The website endpoint is exported as
``websiteUrl``.  The program is handed to the engine as an opaque callable.
"""

from __future__ import annotations

import json

import pulumi
import pulumi_aws as aws

from stackpilot.core.messages import WEBSITE_URL_OUTPUT


INDEX_CONTENT = """<html><head>
    <title>Hello S3</title><meta charset="UTF-8">
</head>
<body><p>Hello, world!</p><p>Made with <a href="https://pulumi.com">Pulumi</a></p>
</body></html>
"""


def _public_read_policy(bucket_name: str) -> str:
    return json.dumps(
        {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": "*",
                    "Action": ["s3:GetObject"],
                    "Resource": [f"arn:aws:s3:::{bucket_name}/*"],
                }
            ],
        }
    )


def website_program() -> None:
    site_bucket = aws.s3.Bucket(
        "s3-website-bucket",
        website=aws.s3.BucketWebsiteArgs(index_document="index.html"),
    )

    aws.s3.BucketObject(
        "index",
        bucket=site_bucket.id,
        content=INDEX_CONTENT,
        key="index.html",
        content_type="text/html; charset=utf-8",
    )

    aws.s3.BucketPolicy(
        "bucketPolicy",
        bucket=site_bucket.id,
        policy=site_bucket.id.apply(_public_read_policy),
    )

    pulumi.export(WEBSITE_URL_OUTPUT, site_bucket.website_endpoint)
