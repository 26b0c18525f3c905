from enum import Enum


class AwsRegion(str, Enum):
    # NB: the engine works against one resolved region at a time

    US_EAST_1 = "us-east-1"  # Virginia

    US_EAST_2 = "us-east-2"  # Ohio

    US_WEST_1 = "us-west-1"  # California

    US_WEST_2 = "us-west-2"  # Oregon

    AF_SOUTH_1 = "af-south-1"  # Cape Town

    AP_EAST_1 = "ap-east-1"  # Hong Kong

    AP_SOUTH_1 = "ap-south-1"  # Mumbai

    AP_SOUTH_2 = "ap-south-2"  # Hyderabad

    AP_NORTHEAST_1 = "ap-northeast-1"  # Tokyo

    AP_NORTHEAST_2 = "ap-northeast-2"  # Seoul

    AP_NORTHEAST_3 = "ap-northeast-3"  # Osaka

    AP_SOUTHEAST_1 = "ap-southeast-1"  # Singapore

    AP_SOUTHEAST_2 = "ap-southeast-2"  # Sydney

    AP_SOUTHEAST_3 = "ap-southeast-3"  # Jakarta

    AP_SOUTHEAST_4 = "ap-southeast-4"  # Melbourne

    CA_CENTRAL_1 = "ca-central-1"  # Montreal

    CA_WEST_1 = "ca-west-1"  # Calgary

    EU_CENTRAL_1 = "eu-central-1"  # Frankfurt

    EU_CENTRAL_2 = "eu-central-2"  # Zurich

    EU_WEST_1 = "eu-west-1"  # Ireland

    EU_WEST_2 = "eu-west-2"  # London

    EU_WEST_3 = "eu-west-3"  # Paris

    EU_NORTH_1 = "eu-north-1"  # Stockholm

    EU_SOUTH_1 = "eu-south-1"  # Milan

    EU_SOUTH_2 = "eu-south-2"  # Spain

    IL_CENTRAL_1 = "il-central-1"  # Tel Aviv

    ME_SOUTH_1 = "me-south-1"  # Bahrain

    ME_CENTRAL_1 = "me-central-1"  # UAE

    SA_EAST_1 = "sa-east-1"  # Sao Paulo

    US_GOV_EAST_1 = "us-gov-east-1"  # GovCloud (US-East)

    US_GOV_WEST_1 = "us-gov-west-1"  # GovCloud (US-West)
