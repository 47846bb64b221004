from flask import request
from flask_wtf import FlaskForm

# Accepted datetime formats for API input, ISO 8601 first
DATETIME_FORMATS = ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M', '%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M']


class ApiForm(FlaskForm):
    """Form fed from a JSON body"""
    class Meta:
        csrf = False


class QueryForm(FlaskForm):
    """Form fed from the query string of a GET request"""
    class Meta:
        csrf = False

    def __init__(self, **kwargs):
        super().__init__(formdata=request.args, **kwargs)
