"""CloudFront distribution serving one prefix of the artifact bucket."""

from aws_cdk import aws_cloudfront as cloudfront
from aws_cdk import aws_cloudfront_origins as origins
from aws_cdk import aws_s3 as s3
from constructs import Construct


class CloudFrontDistribution(Construct):
  """Distribution whose comment is its logical name.

  The site updater finds the distribution to invalidate by this comment, so
  it must be unique within the account.
  """

  def __init__(
    self,
    scope: Construct,
    id: str,
    *,
    bucket: s3.IBucket,
    origin_access_identity: cloudfront.IOriginAccessIdentity,
    name: str,
    default_root_object: str = "index.html",
    compress: bool = True,
  ) -> None:
    super().__init__(scope, id)

    self.distribution = cloudfront.Distribution(
      self,
      "Distribution",
      default_behavior=cloudfront.BehaviorOptions(
        origin=origins.S3BucketOrigin.with_origin_access_identity(
          bucket,
          origin_access_identity=origin_access_identity,
          origin_path=f"/{name}",
        ),
        viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
        allowed_methods=cloudfront.AllowedMethods.ALLOW_GET_HEAD,
        cached_methods=cloudfront.CachedMethods.CACHE_GET_HEAD,
        compress=compress,
      ),
      default_root_object=default_root_object,
      comment=name,
    )
