from rest_framework.exceptions import APIException
from rest_framework import status


class MemberNotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Member not found.'
    default_code = 'member_not_found'
