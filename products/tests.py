import json
from unittest import mock

from django.db import DatabaseError
from graphene_django.utils.testing import GraphQLTestCase

from .models import Product

PRODUCTS_QUERY = '''
    query Products {
        products { id name }
    }
'''


class ProductsQueryTestCase(GraphQLTestCase):
    GRAPHQL_URL = '/graphql/'

    def test_lists_all_products_in_id_order(self):
        tea = Product.objects.create(name='Tea')
        coffee = Product.objects.create(name='Coffee')

        response = self.query(PRODUCTS_QUERY, operation_name='Products')

        self.assertResponseNoErrors(response)
        products = json.loads(response.content)['data']['products']
        self.assertEqual(products, [
            {'id': str(tea.id), 'name': 'Tea'},
            {'id': str(coffee.id), 'name': 'Coffee'},
        ])

    def test_empty_catalog(self):
        response = self.query(PRODUCTS_QUERY, operation_name='Products')

        self.assertResponseNoErrors(response)
        self.assertEqual(json.loads(response.content)['data']['products'], [])

    def test_storage_failure_is_transport_error(self):
        with mock.patch.object(Product.objects, 'order_by', side_effect=DatabaseError('gone')):
            with self.assertLogs('products.schema', level='ERROR'):
                response = self.query(PRODUCTS_QUERY, operation_name='Products')

        self.assertResponseHasErrors(response)
        error = json.loads(response.content)['errors'][0]
        self.assertEqual(error['message'], 'unable to get all products')
        self.assertEqual(error['extensions']['code'], 'INTERNAL')
