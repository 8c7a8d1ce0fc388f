from django.db import models


class Product(models.Model):
    CATEGORIES = [
        ("book", "Book"),
        ("music", "Music"),
        ("video", "Video"),
    ]

    name = models.CharField(max_length=50)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    released = models.DateField(null=True, blank=True)
    active = models.BooleanField(default=True)
    category = models.CharField(max_length=10, choices=CATEGORIES, default="book")

    def __str__(self):
        return self.name


class LineItem(models.Model):
    order_number = models.IntegerField()
    line = models.IntegerField()
    product = models.ForeignKey(Product, on_delete=models.CASCADE)
    quantity = models.IntegerField(default=1)

    class Meta:
        unique_together = [("order_number", "line")]
