"""config URL Configuration

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/4.2/topics/http/urls/
"""
from django.conf import settings
from django.contrib import admin
from django.urls import path
from django.views.decorators.csrf import csrf_exempt
from graphene_django.views import GraphQLView
import json
import logging

logger = logging.getLogger(__name__)


class LoggingGraphQLView(GraphQLView):
    def dispatch(self, request, *args, **kwargs):
        if request.method == 'POST' and request.content_type == 'application/json':
            try:
                body = json.loads(request.body)
                logger.info("GraphQL operation: %s", body.get('operationName') or '<anonymous>')
                logger.debug("GraphQL Query: %s", body.get('query', ''))
            except (ValueError, AttributeError) as e:
                logger.error("Error parsing GraphQL request: %s", str(e))
        return super().dispatch(request, *args, **kwargs)


urlpatterns = [
    path('admin/', admin.site.urls),
    path('graphql/', csrf_exempt(LoggingGraphQLView.as_view(graphiql=settings.DEBUG))),
]
