"""Example: Reading a workbook from AWS S3."""

from sheetstream import load_workbook
from sheetstream.csv_export import write_csv

# Read from S3 using a URI (auto-detection)
workbook = load_workbook("s3://my-bucket/path/to/file.xlsx")

# Or use an explicit S3Source for more control
# import boto3
# from sheetstream import Workbook
# from sheetstream.sources import S3Source
# s3_client = boto3.client("s3", region_name="us-east-1")
# source = S3Source(bucket="my-bucket", key="path/to/file.xlsb", client=s3_client)
# workbook = Workbook(source, fmt="xlsb")

sheet = workbook.get_sheet_by_name("Sheet1")
count = write_csv(sheet.to_python(), "output.csv")
print(f"Exported {count} rows to output.csv")
