from django import forms
from django.utils.translation import gettext_lazy as _

from . import lifecycle
from .models import Category, MenuItem, Order
from .module import PAYMENT_METHODS


class CategoryForm(forms.ModelForm):
    class Meta:
        model = Category
        fields = ['name']
        widgets = {
            'name': forms.TextInput(attrs={
                'class': 'input', 'placeholder': _('Category name'),
            }),
        }


class MenuItemForm(forms.ModelForm):
    class Meta:
        model = MenuItem
        fields = ['category', 'name', 'price', 'image', 'description']
        widgets = {
            'category': forms.Select(attrs={'class': 'select'}),
            'name': forms.TextInput(attrs={
                'class': 'input', 'placeholder': _('Item name'),
            }),
            'price': forms.NumberInput(attrs={
                'class': 'input', 'step': '1', 'min': '0',
            }),
            'image': forms.Textarea(attrs={
                'class': 'textarea', 'rows': 2,
                'placeholder': _('Image URL or data URI'),
            }),
            'description': forms.Textarea(attrs={
                'class': 'textarea', 'rows': 3,
            }),
        }

    def clean_name(self):
        name = self.cleaned_data['name'].strip()
        if not name:
            raise forms.ValidationError(_('Name is required'))
        return name


class TableForm(forms.Form):
    name = forms.CharField(max_length=100, required=False)
    seats = forms.IntegerField(min_value=1, required=False)


class TableCountForm(forms.Form):
    count = forms.IntegerField(min_value=0)


class CheckoutForm(forms.Form):
    payment_method = forms.ChoiceField(choices=PAYMENT_METHODS)


class OrderStatusForm(forms.Form):
    status = forms.ChoiceField(choices=Order.STATUS_CHOICES)


class AdjustQuantityForm(forms.Form):
    delta = forms.IntegerField()


class AddItemForm(forms.Form):
    menu_item_id = forms.UUIDField()


class LoginForm(forms.Form):
    email = forms.CharField(max_length=254)
    password = forms.CharField(widget=forms.PasswordInput)


class RevenueFilterForm(forms.Form):
    """Year / month / day selectors; empty or "all" means no filter."""

    year = forms.IntegerField(required=False, min_value=1970)
    month = forms.IntegerField(required=False, min_value=1, max_value=12)
    day = forms.IntegerField(required=False, min_value=1, max_value=31)

    def __init__(self, data=None, *args, **kwargs):
        if data is not None:
            data = {key: value for key, value in data.items() if value not in ('', 'all')}
        super().__init__(data, *args, **kwargs)


class PaymentStatusFilterForm(forms.Form):
    table_id = forms.IntegerField(required=False, min_value=1)
    payment_status = forms.ChoiceField(
        required=False,
        choices=[('', _('All'))] + [(s, s) for s in lifecycle.PAYMENT_STATUSES],
    )
