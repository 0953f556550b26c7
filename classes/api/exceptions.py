from rest_framework.exceptions import APIException
from rest_framework import status


class ClassNotOpenError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Members can only be enrolled in active classes.'
    default_code = 'class_not_open'
